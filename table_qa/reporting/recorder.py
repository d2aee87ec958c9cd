"""
Step Recorder - captures step timing, evidence and errors inside a test
"""
import logging
import time
import traceback
from contextlib import asynccontextmanager
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from playwright.async_api import Error as PlaywrightError

from ..browser.controller import BrowserController
from ..config import settings
from ..models import TestError, TestStatus
from ..utils.helpers import format_duration, sanitize_filename
from .reporter import Attachment, FinishedStep, FinishedTest

logger = logging.getLogger(__name__)


class StepRecorder:
    """
    Records the steps of one running test.

    Usage:
        recorder = StepRecorder("TC1: Filter by language", controller)
        async with recorder.step("Action: Pick Java|Expected: 3 rows|Actual: 3 rows"):
            ...
        reporter.on_test_end(recorder.finish(), run)
    """

    def __init__(
        self,
        title: str,
        controller: Optional[BrowserController] = None,
        project_name: Optional[str] = None,
        screenshot_dir: Optional[Path] = None,
        retry: int = 0
    ):
        """
        Initialize the recorder for a test.

        Args:
            title: Test title, "TC<n>: <name>" by convention
            controller: Browser to screenshot after each step
            project_name: Browser project name. Defaults to the controller's
            screenshot_dir: Where raw screenshots go before archival
            retry: Retry index of this attempt
        """
        self.title = title
        self.controller = controller
        if project_name is None:
            project_name = controller.project_name if controller else "chromium"
        self.project_name = project_name
        base = Path(screenshot_dir) if screenshot_dir is not None else settings.OUTPUT_DIR / "test-results"
        self.screenshot_dir = base / sanitize_filename(f"{title}-{project_name}")
        self.retry = retry
        self.steps: List[FinishedStep] = []
        self._started = time.monotonic()

    async def _capture(self, step_index: int, step_title: str) -> List[Attachment]:
        """Screenshot after a step; a failed capture leaves the step without evidence."""
        if self.controller is None or self.controller.page is None:
            return []

        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        name = sanitize_filename(step_title.split("|")[0])[:40]
        path = self.screenshot_dir / f"step_{step_index:03d}_{name}_{timestamp}.png"
        try:
            await self.controller.screenshot(str(path))
        except (PlaywrightError, OSError) as e:
            logger.warning(f"Screenshot for step {step_index + 1} of {self.title} failed: {e}")
            return []
        return [Attachment(name="screenshot", content_type="image/png", path=str(path))]

    @asynccontextmanager
    async def step(self, title: str):
        """
        Record one step around the enclosed block.

        The step fails if the block raises; the exception is re-raised after
        the step is recorded.
        """
        started = time.monotonic()
        error = None
        try:
            yield
        except Exception as e:
            error = TestError(message=str(e) or type(e).__name__, stack=traceback.format_exc())
            raise
        finally:
            duration = int((time.monotonic() - started) * 1000)
            logger.debug(f"Step '{title}' {'failed' if error else 'passed'} in {format_duration(duration)}")
            attachments = await self._capture(len(self.steps), title)
            self.steps.append(FinishedStep(
                title=title,
                duration=duration,
                error=error,
                attachments=attachments,
            ))

    def finish(
        self,
        status: Optional[TestStatus] = None,
        error: Optional[TestError] = None
    ) -> FinishedTest:
        """
        Build the finished test for the reporter.

        Args:
            status: Final status. Defaults to failed if any step failed
            error: Test-level error. Defaults to the first step error

        Returns:
            FinishedTest with all recorded steps
        """
        step_errors = [s.error for s in self.steps if s.error is not None]
        if status is None:
            status = TestStatus.FAILED if step_errors else TestStatus.PASSED
        if error is None and step_errors:
            error = step_errors[0]

        return FinishedTest(
            title=self.title,
            project_name=self.project_name,
            status=status,
            duration=int((time.monotonic() - self._started) * 1000),
            retry=self.retry,
            steps=self.steps,
            error=error,
        )
