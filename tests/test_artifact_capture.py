"""
Unit tests for screenshot archival.
"""

from __future__ import annotations

import shutil
from unittest.mock import patch

from table_qa.browser.artifact_capture import ScreenshotArchiver


class TestScreenshotArchiver:
    """Tests for ScreenshotArchiver."""

    def test_archive_copies_into_run_folder(self, tmp_path) -> None:
        source = tmp_path / "results" / "step_000.png"
        source.parent.mkdir()
        source.write_bytes(b"\x89PNG")
        archiver = ScreenshotArchiver("RUN-1", output_dir=tmp_path / "output", base_dir=tmp_path)

        path = archiver.archive(str(source))

        assert path == "screenshots/RUN-1/results/step_000.png"
        assert (tmp_path / "output" / "screenshots" / "RUN-1" / "results" / "step_000.png").read_bytes() == b"\x89PNG"
        assert source.exists()

    def test_same_file_name_from_different_tests(self, tmp_path) -> None:
        """Step files named alike in two test folders are archived side by side."""
        first = tmp_path / "test-results" / "TC1_Filter-chromium" / "step_000_load.png"
        second = tmp_path / "test-results" / "TC2_Sort-chromium" / "step_000_load.png"
        for source, content in ((first, b"first"), (second, b"second")):
            source.parent.mkdir(parents=True)
            source.write_bytes(content)
        archiver = ScreenshotArchiver("RUN-1", output_dir=tmp_path / "output", base_dir=tmp_path)

        first_path = archiver.archive(str(first))
        second_path = archiver.archive(str(second))

        assert first_path == "screenshots/RUN-1/TC1_Filter-chromium/step_000_load.png"
        assert second_path == "screenshots/RUN-1/TC2_Sort-chromium/step_000_load.png"
        assert (tmp_path / "output" / first_path).read_bytes() == b"first"
        assert (tmp_path / "output" / second_path).read_bytes() == b"second"

    def test_missing_source(self, tmp_path) -> None:
        archiver = ScreenshotArchiver("RUN-1", output_dir=tmp_path, base_dir=tmp_path)

        assert archiver.archive(str(tmp_path / "missing.png")) == ""

    def test_copy_failure_is_logged(self, tmp_path, caplog) -> None:
        source = tmp_path / "shot.png"
        source.write_bytes(b"\x89PNG")
        archiver = ScreenshotArchiver("RUN-1", output_dir=tmp_path / "output", base_dir=tmp_path)

        with patch.object(shutil, "copyfile", side_effect=PermissionError("read-only")):
            with caplog.at_level("WARNING"):
                assert archiver.archive(str(source)) == ""

        assert "Could not archive screenshot" in caplog.text

    def test_resolve_falls_back_to_relative_path(self, tmp_path) -> None:
        archiver = ScreenshotArchiver("RUN-1", output_dir=tmp_path / "output", base_dir=tmp_path)

        assert archiver.resolve(str(tmp_path / "test-results" / "gone.png")) == "test-results/gone.png"

    def test_resolve_without_source(self, tmp_path) -> None:
        archiver = ScreenshotArchiver("RUN-1", output_dir=tmp_path, base_dir=tmp_path)

        assert archiver.resolve(None) == ""
        assert archiver.resolve("") == ""

    def test_defaults_from_settings(self, output_dir) -> None:
        archiver = ScreenshotArchiver("RUN-7")

        assert archiver.archive_dir == output_dir / "screenshots" / "RUN-7"
        assert archiver.base_dir == output_dir.parent
