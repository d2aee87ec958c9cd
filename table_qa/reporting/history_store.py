"""
Execution History Store - append-only JSON file of execution records
"""
import json
import logging
from pathlib import Path
from typing import Any, List, Optional

from pydantic import ValidationError

from ..config import settings
from ..models import TestExecutionRecord

logger = logging.getLogger(__name__)


class HistoryError(Exception):
    """Base error for the execution history."""


class HistoryCorruptError(HistoryError):
    """The history file exists but cannot be read as a list of records."""


class ExecutionHistoryStore:
    """
    Persisted collection of test execution records.

    One writer at a time: appends are read-modify-write without locking.
    """

    def __init__(self, path: Optional[Path] = None):
        """
        Initialize the store.

        Args:
            path: History file. Defaults to settings.HISTORY_FILE
        """
        self.path = Path(path) if path is not None else settings.HISTORY_FILE

    def exists(self) -> bool:
        return self.path.exists()

    def read_raw(self) -> List[Any]:
        """
        Read the stored JSON array as-is.

        Returns:
            The raw entries, or an empty list when the file is missing

        Raises:
            HistoryCorruptError: The file is not a JSON array
        """
        if not self.path.exists():
            return []
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            raise HistoryCorruptError(f"Cannot parse {self.path}: {e}") from e
        if not isinstance(data, list):
            raise HistoryCorruptError(
                f"Expected a JSON array in {self.path}, got {type(data).__name__}"
            )
        return data

    def parse(self, raw: List[Any]) -> List[TestExecutionRecord]:
        """Validate raw entries into records."""
        try:
            return [TestExecutionRecord.model_validate(entry) for entry in raw]
        except ValidationError as e:
            raise HistoryCorruptError(f"Invalid record in {self.path}: {e}") from e

    def load(self) -> List[TestExecutionRecord]:
        """
        Load every record, strictly.

        Missing file means no history. Anything unreadable raises
        HistoryCorruptError.
        """
        return self.parse(self.read_raw())

    def append(self, record: TestExecutionRecord) -> bool:
        """
        Append one record to the history file.

        An unreadable history is replaced rather than blocking the append.

        Args:
            record: Record to persist

        Returns:
            True if the file was written
        """
        try:
            history = self.read_raw()
        except HistoryCorruptError as e:
            logger.warning(f"Error reading history file, starting fresh: {e}")
            history = []

        history.append(record.to_dict())

        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(json.dumps(history, indent=2), encoding="utf-8")
        except OSError as e:
            logger.error(f"Error writing to history file {self.path}: {e}")
            return False

        logger.info(f"Recorded {record.test_id} ({record.status.value}) for run {record.run_id}")
        return True
