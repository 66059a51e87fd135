# site_indexer/report/csv_report.py

"""
CSV report for SiteIndexer.

One row per crawled page, sorted by normalized URL, so the file is the same
whatever order the crawl finished in.
"""
from __future__ import annotations

import csv
from pathlib import Path
from typing import Mapping, Optional

from site_indexer.crawler.models import PageFacts
from site_indexer.logger import logger

HEADERS = ("page_url", "h1", "first_paragraph", "outgoing_link_urls", "image_urls")


def write_csv_report(
    results: Mapping[str, PageFacts], output_path: Path | str = "report.csv"
) -> Optional[Path]:
    """
    Write *results* to *output_path* as CSV.

    Values containing a comma, a quote or a newline are quoted, with inner
    quotes doubled. An empty result table writes nothing and returns None.
    """
    if not results:
        logger.info("No data to write to CSV")
        return None

    output = Path(output_path)
    output.parent.mkdir(parents=True, exist_ok=True)

    with output.open("w", encoding="utf-8", newline="") as f:
        writer = csv.writer(f, quoting=csv.QUOTE_MINIMAL, lineterminator="\n")
        writer.writerow(HEADERS)
        for key in sorted(results):
            facts = results[key]
            writer.writerow(
                (
                    key,
                    facts.heading,
                    facts.lead_paragraph,
                    ";".join(facts.outgoing_links),
                    ";".join(facts.image_urls),
                )
            )

    logger.info("Report written to %s", output.resolve())
    return output
