"""Writing report artifacts to disk."""

import logging
from collections.abc import Mapping
from pathlib import Path

from run_reporter.config import ReportConfig
from run_reporter.errors import ArtifactWriteError
from run_reporter.models.summary import RunReport
from run_reporter.rendering import render_markdown

log = logging.getLogger(__name__)


def dump_report(report: RunReport) -> str:
    """Serialize a report to its canonical JSON form."""
    return report.model_dump_json(by_alias=True, indent=2)


def write_artifacts(report: RunReport, config: ReportConfig) -> tuple[Path, Path]:
    """Write the JSON report and Markdown summary.

    Returns:
        Paths of the JSON report and the Markdown summary

    Raises:
        ArtifactWriteError: If the directory or either file cannot be written

    """
    try:
        config.report_dir.mkdir(parents=True, exist_ok=True)
        config.json_path.write_text(dump_report(report), encoding="utf-8")
        config.markdown_path.write_text(render_markdown(report), encoding="utf-8")
    except OSError as e:
        raise ArtifactWriteError(
            f"Failed to write report artifacts to {config.report_dir}: {e}"
        ) from e

    log.info("Report written to %s", config.json_path)
    return config.json_path, config.markdown_path


def load_report(path: Path) -> RunReport:
    """Load a previously written JSON report."""
    return RunReport.model_validate_json(path.read_text(encoding="utf-8"))


def write_environment_properties(
    results_dir: Path, properties: Mapping[str, object]
) -> Path:
    """Write an Allure ``environment.properties`` file.

    Entries whose value is ``None`` are left out.
    """
    results_dir.mkdir(parents=True, exist_ok=True)
    path = results_dir / "environment.properties"
    content = "\n".join(
        f"{key}={value}" for key, value in properties.items() if value is not None
    )
    path.write_text(content + "\n", encoding="utf-8")
    return path
