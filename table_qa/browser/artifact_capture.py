"""
Artifact Capture - archives step screenshots per run
"""
import logging
import os
import shutil
from pathlib import Path
from typing import Optional

from ..config import settings
from ..utils.helpers import sanitize_filename

logger = logging.getLogger(__name__)


class ScreenshotArchiver:
    """
    Copies screenshots into a per-run archive under the output directory.

    Archived paths are returned relative to the output directory, which is
    where the dashboard lives, so the report can link them directly.
    """

    def __init__(
        self,
        run_id: str,
        output_dir: Optional[Path] = None,
        base_dir: Optional[Path] = None
    ):
        """
        Initialize the archiver for a run.

        Args:
            run_id: Run identifier, used as the archive folder name
            output_dir: Report output directory. Defaults to settings.OUTPUT_DIR
            base_dir: Directory unarchived paths are made relative to.
                Defaults to settings.BASE_DIR
        """
        self.run_id = run_id
        self.output_dir = Path(output_dir) if output_dir is not None else settings.OUTPUT_DIR
        self.base_dir = Path(base_dir) if base_dir is not None else settings.BASE_DIR
        self.archive_dir = self.output_dir / "screenshots" / run_id

    def archive(self, source: str) -> str:
        """
        Copy a screenshot into the run archive.

        Args:
            source: Path of the captured image

        Returns:
            Relative archived path, or "" if the copy failed
        """
        source_path = Path(source)
        if not source_path.exists():
            return ""
        # Step file names are only unique within their test folder
        folder = sanitize_filename(source_path.parent.name)
        name = f"{folder}/{source_path.name}" if folder else source_path.name
        target = self.archive_dir / name
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            shutil.copyfile(source_path, target)
        except OSError as e:
            logger.warning(f"Could not archive screenshot {source}: {e}")
            return ""
        logger.debug(f"Archived {source} into {target}")
        return f"screenshots/{self.run_id}/{name}"

    def relative(self, source: str) -> str:
        """Path of an unarchived screenshot relative to the base directory."""
        return os.path.relpath(source, self.base_dir).replace("\\", "/")

    def resolve(self, source: Optional[str]) -> str:
        """
        Archived path for a screenshot, falling back to its relative path.

        Args:
            source: Path of the captured image, may be None

        Returns:
            Path to store in the step record, "" when there is no image
        """
        if not source:
            return ""
        return self.archive(source) or self.relative(source)
