"""Configuration for report output."""

from pathlib import Path

from pydantic import BaseModel


class ReportConfig(BaseModel):
    """Where and under which names report artifacts are written."""

    report_dir: Path = Path("reports")
    json_filename: str = "custom-report.json"
    markdown_filename: str = "summary.md"

    @property
    def json_path(self) -> Path:
        """Path of the machine-readable report."""
        return self.report_dir / self.json_filename

    @property
    def markdown_path(self) -> Path:
        """Path of the Markdown summary."""
        return self.report_dir / self.markdown_filename
