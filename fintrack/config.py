"""Configuration management using Pydantic Settings"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables"""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Database
    database_url: str = "sqlite:///./fintrack.db"

    # Generative AI (Gemini) - empty key means rule-based analysis only
    gemini_api_key: str = ""
    gemini_api_base: str = "https://generativelanguage.googleapis.com/v1beta"
    gemini_model: str = "gemini-2.0-flash"
    llm_timeout_seconds: float = 30.0
    llm_max_output_tokens: int = 1000
    llm_temperature: float = 0.7

    # Fraud dataset
    dataset_dir: str = "./attached_assets"
    dataset_max_records: int = 50_000

    # Service
    service_name: str = "fintrack"
    log_level: str = "INFO"


settings = Settings()
