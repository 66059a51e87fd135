"""site_indexer.report: CSV and JSON report writers used by the CLI."""

from site_indexer.report.csv_report import write_csv_report
from site_indexer.report.json_report import render_json

__all__ = ["write_csv_report", "render_json"]
