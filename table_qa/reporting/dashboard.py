"""
Dashboard Renderer - self-contained HTML report of the execution history

Features:
- Analytics with pass/fail charts, browser and category breakdowns
- Run history with execution mode and search
- Test evidence viewer with step screenshots and error details
- Parallel vs sequential comparison
"""
import logging
import os
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

from jinja2 import Environment, FileSystemLoader, select_autoescape

from ..config import settings
from ..models import HistorySummary, TestExecutionRecord
from ..utils.helpers import format_chart_label, format_seconds, format_timestamp
from .history_store import ExecutionHistoryStore, HistoryCorruptError
from .metrics import format_speedup, summarize_history

logger = logging.getLogger(__name__)

TEMPLATES_DIR = Path(__file__).parent.parent / "templates"
TEMPLATE_NAME = "dashboard.html"

BROWSER_INFO = {
    "chromium": {"name": "Chrome", "icon": "fa-brands fa-chrome", "color": "#4285F4"},
    "firefox": {"name": "Firefox", "icon": "fa-brands fa-firefox-browser", "color": "#FF7139"},
    "webkit": {"name": "Safari", "icon": "fa-brands fa-safari", "color": "#006CFF"},
}


def rate_color(value: float, good: int = 90, warn: int = 70) -> str:
    """CSS colour for a percentage."""
    if value >= good:
        return "var(--success)"
    if value >= warn:
        return "var(--warning)"
    return "var(--danger)"


def create_environment(templates_dir: Path = TEMPLATES_DIR) -> Environment:
    env = Environment(
        loader=FileSystemLoader(str(templates_dir)),
        autoescape=select_autoescape(["html"]),
    )
    # Keep embedded data in its stored order.
    env.policies["json.dumps_kwargs"] = {}
    env.filters["timestamp"] = format_timestamp
    env.filters["seconds"] = format_seconds
    env.globals.update({
        "app_name": settings.APP_NAME,
        "rate_color": rate_color,
    })
    return env


class DashboardRenderer:
    """
    Renders the execution history into one HTML file.

    The document embeds the raw history, the grouped runs and the browser
    lookup, and needs no server to view.
    """

    def __init__(
        self,
        store: Optional[ExecutionHistoryStore] = None,
        output_path: Optional[Path] = None,
        environment: Optional[Environment] = None
    ):
        """
        Initialize the renderer.

        Args:
            store: History to read. Defaults to the configured history file
            output_path: Report file. Defaults to settings.REPORT_FILE
            environment: Jinja2 environment, mainly for tests
        """
        self.store = store or ExecutionHistoryStore()
        self.output_path = Path(output_path) if output_path is not None else settings.REPORT_FILE
        self.env = environment or create_environment()

    def _run_time_data(self, summary: HistorySummary) -> List[Dict[str, Any]]:
        """Most recent runs for the charts, oldest first."""
        recent = summary.sorted_runs[:settings.RUN_HISTORY_CHART_SIZE]
        return [
            {
                "label": format_chart_label(run.timestamp),
                "runId": run.id,
                "runTime": format_seconds(run.wall_clock_time),
                "mode": run.execution_mode.value,
                "passed": run.passed,
                "failed": run.failed,
                "total": len(run.results),
            }
            for run in reversed(recent)
        ]

    def build_context(
        self,
        raw_history: List[Any],
        records: List[TestExecutionRecord]
    ) -> Dict[str, Any]:
        """
        Everything the template needs.

        Args:
            raw_history: Entries exactly as stored, embedded for export
            records: The same entries validated

        Returns:
            Template context
        """
        summary = summarize_history(records)
        sorted_runs = summary.sorted_runs

        return {
            "history": raw_history,
            "run_groups": {run_id: run.to_dict() for run_id, run in summary.runs.items()},
            "browser_info": BROWSER_INFO,
            "run_time_data": self._run_time_data(summary),
            "initial_run_id": sorted_runs[0].id if sorted_runs else "",
            "sorted_runs": sorted_runs,
            "stats": summary.global_stats,
            "browser_stats": summary.browser_stats,
            "category_stats": summary.category_stats,
            "metrics": summary.execution_metrics,
            "speedup_label": format_speedup(summary.speedup),
            "generated_at": datetime.now().strftime("%Y-%m-%d %H:%M:%S"),
        }

    def render(self, raw_history: List[Any], records: List[TestExecutionRecord]) -> str:
        """Render the dashboard document."""
        template = self.env.get_template(TEMPLATE_NAME)
        return template.render(**self.build_context(raw_history, records))

    def generate(self) -> Optional[Path]:
        """
        Read the history and write the dashboard.

        Returns:
            Path of the written report, or None when there was nothing to
            render, the history could not be read or the report could not be
            written
        """
        if not self.store.exists():
            logger.warning("No history found. Run tests first.")
            return None

        try:
            raw_history = self.store.read_raw()
            records = self.store.parse(raw_history)
        except HistoryCorruptError as e:
            logger.error(f"Error parsing history file: {e}")
            return None

        if not records:
            logger.warning(f"History at {self.store.path} is empty. Run tests first.")
            return None

        html = self.render(raw_history, records)

        # Readers never see a half-written report
        tmp_path = self.output_path.with_name(f".{self.output_path.name}.tmp")
        try:
            self.output_path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(html, encoding="utf-8")
            os.replace(tmp_path, self.output_path)
        except OSError as e:
            logger.error(f"Error writing dashboard {self.output_path}: {e}")
            tmp_path.unlink(missing_ok=True)
            return None

        runs = len({r.run_id for r in records})
        logger.info(f"Dashboard generated: {self.output_path} ({len(records)} records, {runs} runs)")
        return self.output_path


def generate_report(
    history_file: Optional[Path] = None,
    output_path: Optional[Path] = None
) -> Optional[Path]:
    """Generate the dashboard from the configured (or given) history file."""
    store = ExecutionHistoryStore(history_file)
    return DashboardRenderer(store=store, output_path=output_path).generate()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    generate_report()
