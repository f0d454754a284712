# a11y_scout/report/json_report.py

"""
JSON report for A11y Scout.

Serializes a terminal Scan, with a per-page breakdown, to a file.
"""
import json
from pathlib import Path
from typing import Any, Dict

from a11y_scout.aggregator import summarize_pages
from a11y_scout.scan.models import Scan


def build_report(scan: Scan) -> Dict[str, Any]:
    """Scan record plus per-page issue counts, ready for ``json.dump``."""
    data = scan.to_dict()
    data.pop("owner", None)
    data["pages"] = summarize_pages(scan.issues)
    return data


def render_json(scan: Scan, output_path: Path | str, *, pretty: bool = True) -> Path:
    """
    Save the report for *scan* as JSON at *output_path*.

    :param scan: scan record (normally completed or failed)
    :param output_path: path of the JSON file
    :param pretty: indent with two spaces
    :return: Path of the written file

    Example:
    ```python
    from a11y_scout.report.json_report import render_json
    report_path = render_json(scan, 'reports/scan.json')
    ```
    """
    output = Path(output_path)
    output.parent.mkdir(parents=True, exist_ok=True)

    with output.open('w', encoding='utf-8') as f:
        json.dump(build_report(scan), f, ensure_ascii=False, indent=2 if pretty else None)

    return output
