"""
FastAPI Main Application - Table QA Harness

Serves the generated dashboard, the archived screenshots and JSON views of
the execution history.
"""
import logging
import math
from datetime import datetime
from typing import Any, List

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse

from .config import settings
from .models import TestExecutionRecord
from .reporting.dashboard import DashboardRenderer
from .reporting.history_store import ExecutionHistoryStore, HistoryCorruptError
from .reporting.metrics import format_speedup, summarize_history

logger = logging.getLogger(__name__)


app = FastAPI(
    title=settings.APP_NAME,
    description="Execution history and evidence dashboard for UI table tests",
    version="1.0.0"
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def finite(value: Any) -> Any:
    """Replace NaN and infinities with None, recursively."""
    if isinstance(value, float) and not math.isfinite(value):
        return None
    if isinstance(value, dict):
        return {k: finite(v) for k, v in value.items()}
    if isinstance(value, list):
        return [finite(v) for v in value]
    return value


def load_history() -> List[TestExecutionRecord]:
    """Strict load of the configured history, mapped to HTTP errors."""
    store = ExecutionHistoryStore()
    if not store.exists():
        raise HTTPException(status_code=404, detail="No execution history found")
    try:
        return store.load()
    except HistoryCorruptError as e:
        logger.error(f"Cannot serve history: {e}")
        raise HTTPException(status_code=500, detail=str(e))


# API Endpoints
@app.get("/")
async def root():
    """Serve the generated dashboard"""
    if settings.REPORT_FILE.exists():
        return FileResponse(str(settings.REPORT_FILE))
    return {"message": f"{settings.APP_NAME} API", "report": "POST /api/report", "docs": "/docs"}


@app.post("/api/report")
async def generate_dashboard():
    """
    Regenerate the dashboard from the current history.
    """
    records = load_history()
    if not records:
        raise HTTPException(status_code=404, detail="Execution history is empty")

    path = DashboardRenderer().generate()
    if path is None:
        raise HTTPException(status_code=500, detail="Dashboard could not be generated")

    return {
        "status": "generated",
        "path": str(path),
        "records": len(records),
        "runs": len({r.run_id for r in records}),
    }


@app.get("/api/history")
async def get_history():
    """
    Get the stored records exactly as persisted.
    """
    store = ExecutionHistoryStore()
    try:
        return store.read_raw()
    except HistoryCorruptError as e:
        raise HTTPException(status_code=500, detail=str(e))


@app.get("/api/runs")
async def get_runs():
    """
    Get run groups, newest first.
    """
    summary = summarize_history(load_history())
    runs = []
    for run in summary.sorted_runs:
        data = run.to_dict()
        data["total"] = len(run.results)
        data.pop("results")
        runs.append(data)
    return finite(runs)


@app.get("/api/runs/{run_id}")
async def get_run(run_id: str):
    """
    Get one run group with its records.
    """
    summary = summarize_history(load_history())
    if run_id not in summary.runs:
        raise HTTPException(status_code=404, detail="Run not found")
    return finite(summary.runs[run_id].to_dict())


@app.get("/api/metrics")
async def get_metrics():
    """
    Get global, browser, category and execution mode metrics.
    """
    summary = summarize_history(load_history())
    return finite({
        "globalStats": summary.global_stats.to_dict(),
        "browserStats": [b.to_dict() for b in summary.browser_stats],
        "categoryStats": [c.to_dict() for c in summary.category_stats],
        "executionMetrics": summary.execution_metrics.to_dict(),
        "speedup": summary.speedup,
        "speedupLabel": format_speedup(summary.speedup),
    })


@app.get("/screenshots/{filename:path}")
async def get_screenshot(filename: str):
    """
    Get an archived screenshot.
    """
    root = settings.SCREENSHOTS_DIR.resolve()
    file_path = (root / filename).resolve()

    if not file_path.is_relative_to(root) or not file_path.is_file():
        raise HTTPException(status_code=404, detail="Screenshot not found")

    return FileResponse(str(file_path))


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {"status": "healthy", "timestamp": datetime.now().isoformat()}


if __name__ == "__main__":
    import uvicorn
    logging.basicConfig(level=logging.DEBUG if settings.DEBUG else logging.INFO)
    uvicorn.run(app, host="0.0.0.0", port=8000)
