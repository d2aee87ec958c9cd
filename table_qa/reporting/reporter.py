"""
Execution Reporter - turns finished tests into execution history records
"""
import re
from datetime import datetime, timezone
from typing import List, Optional, Tuple

from pydantic import BaseModel, Field

from ..browser.artifact_capture import ScreenshotArchiver
from ..config import settings
from ..models import (
    BrowserType,
    TestCategory,
    TestError,
    TestExecutionRecord,
    TestStatus,
    TestStep,
)
from ..utils.helpers import timestamp_now
from .history_store import ExecutionHistoryStore

TITLE_PATTERN = re.compile(r"^(TC\d+):\s*(.*)$")
UNKNOWN_TEST_ID = "TC-?"
STEP_CATEGORY = "test.step"
FINAL_EVIDENCE_STEP = "Final Evidence"

_CATEGORY_RANGES = (
    (1, 4, TestCategory.FILTER),
    (5, 6, TestCategory.UI_STATE),
    (7, 8, TestCategory.SORTING),
    (9, 10, TestCategory.DATA_INTEGRITY),
)


class Attachment(BaseModel):
    """File attached to a test or a step."""

    name: str = ""
    content_type: str = ""
    path: Optional[str] = None


class FinishedStep(BaseModel):
    """A step as reported by the test runner, possibly nested."""

    title: str
    category: str = STEP_CATEGORY
    duration: Optional[int] = None
    error: Optional[TestError] = None
    attachments: List[Attachment] = Field(default_factory=list)
    steps: List["FinishedStep"] = Field(default_factory=list)


FinishedStep.model_rebuild()


class FinishedTest(BaseModel):
    """A test as reported by the test runner once it is done."""

    title: str
    project_name: str = "chromium"
    status: TestStatus
    duration: int = 0
    retry: int = 0
    steps: List[FinishedStep] = Field(default_factory=list)
    attachments: List[Attachment] = Field(default_factory=list)
    error: Optional[TestError] = None


class RunContext(BaseModel):
    """
    Identity of one test session.

    Created once when the session starts and passed to every record.
    """

    run_id: str
    execution_mode: str = "unknown"
    started_at: str = ""

    @classmethod
    def create(cls, execution_mode: Optional[str] = None) -> "RunContext":
        """
        Start a new run.

        Args:
            execution_mode: How the session was invoked. Defaults to
                settings.EXECUTION_MODE
        """
        now = datetime.now(timezone.utc)
        stamp = re.sub(r"[:.]", "-", now.isoformat())[:19]
        return cls(
            run_id=f"RUN-{stamp}",
            execution_mode=execution_mode or settings.EXECUTION_MODE,
            started_at=timestamp_now(),
        )


def parse_title(title: str) -> Tuple[str, str]:
    """Split "TC1: Name" into ("TC1", "Name"); unmatched titles get the fallback id."""
    match = TITLE_PATTERN.match(title)
    if match:
        return match.group(1), match.group(2)
    return UNKNOWN_TEST_ID, title


def browser_from_project(project_name: Optional[str]) -> BrowserType:
    name = (project_name or "").lower()
    if "firefox" in name:
        return BrowserType.FIREFOX
    if "webkit" in name or "safari" in name:
        return BrowserType.WEBKIT
    return BrowserType.CHROMIUM


def category_for(test_id: str) -> TestCategory:
    """Category from the numeric part of a test id."""
    digits = re.match(r"\d+", test_id.replace("TC", "", 1))
    if not digits:
        return TestCategory.OTHER
    number = int(digits.group(0))
    for low, high, category in _CATEGORY_RANGES:
        if low <= number <= high:
            return category
    return TestCategory.OTHER


def parse_step_title(title: str) -> Tuple[str, Optional[str], Optional[str]]:
    """
    Parse "Action: ...|Expected: ...|Actual: ..." step titles.

    Returns:
        (name, expected, actual); titles without a pipe are returned unchanged
    """
    if "|" not in title:
        return title, None, None

    parts = title.split("|")

    def value(prefix: str) -> Optional[str]:
        for part in parts:
            if part.startswith(prefix):
                return part[len(prefix):].strip()
        return None

    name = value("Action:") or parts[0].strip()
    return name, value("Expected:"), value("Actual:")


def _is_image(attachment: Attachment) -> bool:
    return attachment.content_type.startswith("image/") and bool(attachment.path)


class ExecutionReporter:
    """
    Records each finished test into the execution history.

    Features:
    - Browser-wise tracking (chromium, firefox, webkit)
    - Test categorization
    - Step-level timing, status and screenshots
    - Error capture with stack traces
    - Retry tracking
    """

    def __init__(self, store: Optional[ExecutionHistoryStore] = None):
        self.store = store or ExecutionHistoryStore()

    def _find_image(self, step: FinishedStep, archiver: ScreenshotArchiver) -> str:
        """First image in a step or its sub-steps, depth first."""
        for attachment in step.attachments:
            if _is_image(attachment):
                return archiver.resolve(attachment.path)
        for sub_step in step.steps:
            found = self._find_image(sub_step, archiver)
            if found:
                return found
        return ""

    def _build_steps(self, test: FinishedTest, archiver: ScreenshotArchiver) -> List[TestStep]:
        steps = []
        for finished in test.steps:
            if finished.category != STEP_CATEGORY:
                continue
            name, expected, actual = parse_step_title(finished.title)
            steps.append(TestStep(
                name=name,
                status=TestStatus.FAILED if finished.error else TestStatus.PASSED,
                duration=finished.duration or 0,
                timestamp=timestamp_now(),
                screenshot=self._find_image(finished, archiver),
                expected=expected,
                actual=actual,
                error=finished.error,
            ))

        if not steps:
            evidence = next((a for a in test.attachments if _is_image(a)), None)
            if evidence is not None:
                steps.append(TestStep(
                    name=FINAL_EVIDENCE_STEP,
                    status=test.status,
                    duration=test.duration,
                    timestamp=timestamp_now(),
                    screenshot=archiver.resolve(evidence.path),
                ))
        return steps

    def build_record(self, test: FinishedTest, run: RunContext) -> TestExecutionRecord:
        """
        Convert a finished test into a history record.

        Args:
            test: The finished test
            run: The session the test belongs to

        Returns:
            The record, not yet persisted
        """
        test_id, test_name = parse_title(test.title)
        archiver = ScreenshotArchiver(run.run_id)

        return TestExecutionRecord(
            test_id=test_id,
            run_id=run.run_id,
            test_name=test_name,
            description=test.title,
            status=test.status,
            duration=test.duration,
            timestamp=timestamp_now(),
            steps=self._build_steps(test, archiver),
            execution_mode=run.execution_mode,
            browser=browser_from_project(test.project_name),
            category=category_for(test_id),
            retry_count=test.retry,
            error=test.error if test.status != TestStatus.PASSED else None,
        )

    def on_test_end(self, test: FinishedTest, run: RunContext) -> TestExecutionRecord:
        """Build the record for a finished test and append it to the history."""
        record = self.build_record(test, run)
        self.store.append(record)
        return record
