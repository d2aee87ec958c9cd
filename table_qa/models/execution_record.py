"""
Execution Record Data Model

Mirrors the persisted execution-history JSON. Field names are snake_case in
Python and camelCase on disk.
"""
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator
from pydantic.alias_generators import to_camel


class TestStatus(str, Enum):
    """Outcome of a test or a step."""

    __test__ = False

    PASSED = "passed"
    FAILED = "failed"
    TIMED_OUT = "timedOut"
    SKIPPED = "skipped"
    INTERRUPTED = "interrupted"


class BrowserType(str, Enum):
    """Browser engines a test can run on."""

    CHROMIUM = "chromium"
    FIREFOX = "firefox"
    WEBKIT = "webkit"


class TestCategory(str, Enum):
    """Test classification derived from the numeric test id."""

    __test__ = False

    FILTER = "Filter Tests"
    UI_STATE = "UI State Tests"
    SORTING = "Sorting Tests"
    DATA_INTEGRITY = "Data Integrity Tests"
    OTHER = "Other"


# Run-level accumulation: anything that is not a pass counts as a failure.
RUN_OUTCOME = {
    TestStatus.PASSED: "passed",
    TestStatus.FAILED: "failed",
    TestStatus.TIMED_OUT: "failed",
    TestStatus.SKIPPED: "failed",
    TestStatus.INTERRUPTED: "failed",
}

# Mode and global statistics keep skipped tests apart.
DETAILED_OUTCOME = {
    TestStatus.PASSED: "passed",
    TestStatus.FAILED: "failed",
    TestStatus.TIMED_OUT: "failed",
    TestStatus.SKIPPED: "skipped",
    TestStatus.INTERRUPTED: "failed",
}


class CamelModel(BaseModel):
    """Base model serialized with camelCase keys."""

    class Config:
        alias_generator = to_camel
        populate_by_name = True

    def to_dict(self) -> dict:
        """Dump in the on-disk shape (camelCase, no unset optionals)."""
        return self.model_dump(by_alias=True, exclude_none=True)


class TestError(CamelModel):
    """Failure detail for a test or a step."""

    __test__ = False

    message: str = "Unknown error"
    stack: Optional[str] = None
    expected: Optional[str] = None
    actual: Optional[str] = None


class TestStep(CamelModel):
    """One logical action or assertion within a test."""

    __test__ = False

    name: str
    status: TestStatus = TestStatus.PASSED
    duration: int = 0
    timestamp: str = ""
    screenshot: str = ""
    expected: Optional[str] = None
    actual: Optional[str] = None
    error: Optional[TestError] = None


class TestExecutionRecord(CamelModel):
    """One test executed once on one browser."""

    __test__ = False

    test_id: str = Field(default="TC-?", description="Short id such as TC1")
    run_id: Optional[str] = Field(default=None, description="Batch the execution belongs to")
    test_name: str = ""
    description: str = ""
    status: TestStatus
    duration: int = 0
    timestamp: str = ""
    steps: List[TestStep] = Field(default_factory=list)
    execution_mode: str = "unknown"
    browser: BrowserType = BrowserType.CHROMIUM
    category: TestCategory = TestCategory.OTHER
    retry_count: int = Field(default=0, ge=0)
    error: Optional[TestError] = None

    @field_validator("run_id", mode="before")
    @classmethod
    def legacy_run_id(cls, value):
        """Anything but a non-blank string belongs to the legacy bucket."""
        if not isinstance(value, str) or not value.strip():
            return None
        return value

    @field_validator("timestamp", mode="before")
    @classmethod
    def timestamp_text(cls, value):
        # Unparseable timestamps surface later as NaN wall-clock times.
        if value is None:
            return ""
        return value if isinstance(value, str) else str(value)
