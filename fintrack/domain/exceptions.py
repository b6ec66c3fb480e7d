"""Domain-specific exceptions"""


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class InvalidTransactionDataError(DomainException):
    """Transaction data is malformed or invalid"""

    pass


class DatasetProcessingError(DomainException):
    """Bulk fraud dataset could not be parsed or is empty"""

    pass


class LLMAnalysisError(DomainException):
    """Generative AI API returned an error, timed out, or gave an unusable answer"""

    pass
