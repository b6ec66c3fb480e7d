"""Startup loading of the bulk fraud dataset into the in-memory pattern cache"""

import logging
import zipfile
from pathlib import Path
from typing import Optional

from fintrack.config import settings
from fintrack.domain.dataset_patterns import mine_dataset_patterns
from fintrack.domain.exceptions import DatasetProcessingError
from fintrack.domain.models import DatasetPatterns


class DatasetPatternStore:
    """
    Holder for the dataset pattern table shared by the whole process.

    Written once at startup; None means "no dataset" and is a normal state
    for every reader, including readers racing the startup load.
    """

    def __init__(self, patterns: Optional[DatasetPatterns] = None):
        self._patterns = patterns

    def get(self) -> Optional[DatasetPatterns]:
        return self._patterns

    def set(self, patterns: Optional[DatasetPatterns]) -> None:
        self._patterns = patterns

    @property
    def loaded(self) -> bool:
        return self._patterns is not None


def find_dataset_file(dataset_dir: str | Path) -> Optional[Path]:
    """First .zip archive in the directory, else first .csv, else None"""
    directory = Path(dataset_dir)
    if not directory.is_dir():
        return None

    for suffix in (".zip", ".csv"):
        candidates = sorted(p for p in directory.iterdir() if p.is_file() and p.suffix.lower() == suffix)
        if candidates:
            return candidates[0]
    return None


def read_dataset_csv(path: Path) -> str:
    """
    Return CSV text from a bare CSV file or the first CSV member of a ZIP archive.

    Raises:
        DatasetProcessingError: If the archive is corrupt or holds no CSV
    """
    if path.suffix.lower() == ".csv":
        return path.read_text(encoding="utf-8", errors="replace")

    try:
        with zipfile.ZipFile(path) as archive:
            members = sorted(name for name in archive.namelist() if name.lower().endswith(".csv"))
            if not members:
                raise DatasetProcessingError(f"No CSV file inside {path.name}")
            with archive.open(members[0]) as member:
                return member.read().decode("utf-8", errors="replace")
    except zipfile.BadZipFile as e:
        raise DatasetProcessingError(f"Corrupt dataset archive {path.name}: {e}") from e


def initialize_dataset_patterns(
    store: DatasetPatternStore,
    dataset_dir: str | Path | None = None,
    max_records: int | None = None,
) -> Optional[DatasetPatterns]:
    """
    Mine the dataset found in dataset_dir into the store, best effort.

    A missing directory, missing file, or unreadable dataset is logged and
    leaves the store empty; nothing here is fatal to startup.
    """
    dataset_dir = dataset_dir or settings.dataset_dir
    max_records = max_records or settings.dataset_max_records

    path = find_dataset_file(dataset_dir)
    if path is None:
        logging.info(
            "Fraud dataset not found, starting without pretrained patterns",
            extra={"step": "dataset_init", "dataset_dir": str(dataset_dir)},
        )
        return None

    try:
        patterns = mine_dataset_patterns(read_dataset_csv(path), max_records=max_records)
    except (DatasetProcessingError, OSError) as e:
        logging.warning(
            f"Dataset initialization skipped: {e}",
            extra={"step": "dataset_init", "dataset_path": str(path)},
        )
        return None

    store.set(patterns)
    logging.info(
        "Loaded fraud patterns from dataset",
        extra={
            "step": "dataset_init",
            "dataset_path": str(path),
            "patterns": len(patterns.patterns),
            "transactions_analyzed": patterns.total_transactions_analyzed,
        },
    )
    return patterns
