"""
Configuration settings for the Table QA Harness
"""
from pydantic_settings import BaseSettings
from pathlib import Path


class Settings(BaseSettings):
    """Application settings"""

    # Application
    APP_NAME: str = "Table QA Harness"
    DEBUG: bool = True

    # Paths
    BASE_DIR: Path = Path.cwd()
    OUTPUT_DIR: Path = BASE_DIR / "output"
    HISTORY_FILE: Path = OUTPUT_DIR / "execution-history.json"
    REPORT_FILE: Path = OUTPUT_DIR / "dashboard.html"
    SCREENSHOTS_DIR: Path = OUTPUT_DIR / "screenshots"

    # Browser settings
    BASE_URL: str = "http://localhost:3000"
    BROWSER_HEADLESS: bool = True
    BROWSER_TIMEOUT: int = 30000  # ms

    # Wait settings (ms)
    WAIT_TIMEOUT: int = 5000
    STABILITY_THRESHOLD: int = 100
    POLL_INTERVAL: int = 50
    NETWORK_QUIET_THRESHOLD: int = 500
    RETRY_ATTEMPTS: int = 3
    RETRY_DELAY: int = 1000

    # Reporting
    EXECUTION_MODE: str = "unknown"
    RECENT_WINDOW: int = 100
    RUN_HISTORY_CHART_SIZE: int = 10

    class Config:
        env_file = ".env"
        extra = "allow"


settings = Settings()

# Ensure directories exist
settings.OUTPUT_DIR.mkdir(parents=True, exist_ok=True)
