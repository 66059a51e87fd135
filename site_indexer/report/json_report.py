# site_indexer/report/json_report.py

"""
JSON report for SiteIndexer: the result table as a list sorted by URL.
"""
import json
from pathlib import Path
from typing import Mapping

from site_indexer.crawler.models import PageFacts


def render_json(results: Mapping[str, PageFacts], output_path: Path | str) -> Path:
    """
    Save *results* as JSON at *output_path*.

    :param results: mapping of normalized URL to PageFacts
    :param output_path: path to the JSON file
    :return: Path of the saved file

    Example:
    ```python
    from site_indexer.report.json_report import render_json
    report_path = render_json(results, 'reports/report.json')
    ```
    """
    output = Path(output_path)
    output.parent.mkdir(parents=True, exist_ok=True)

    data = [results[key].as_dict() for key in sorted(results)]

    with output.open('w', encoding='utf-8') as f:
        json.dump(data, f, ensure_ascii=False, indent=2)

    return output
