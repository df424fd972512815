"""
Report Export

Serializes consistency reports as text, HTML or JSON and writes them to disk.

JSON output is report.to_dict() with no fields dropped, so

    ConsistencyReport.from_dict(json.loads(render(report, "json"))) == report
"""

from __future__ import annotations

import json
import os
from enum import Enum
from typing import Union

from loguru import logger

from ..comparison.models import ConsistencyReport
from .html_preview import render_html
from .text_report import render_text


class ReportFormat(Enum):
    """Supported report formats."""
    TEXT = 'text'
    HTML = 'html'
    JSON = 'json'

    @property
    def extension(self) -> str:
        return {'text': '.txt', 'html': '.html', 'json': '.json'}[self.value]

    @classmethod
    def parse(cls, value: Union['ReportFormat', str]) -> 'ReportFormat':
        """Look up a format by enum member or name."""
        if isinstance(value, cls):
            return value
        key = str(value).strip().lower()
        if key == 'txt':
            key = 'text'
        for fmt in cls:
            if fmt.value == key:
                return fmt
        raise ValueError(f"Unsupported format: {value}")


def render_json(report: ConsistencyReport, indent: int = 2) -> str:
    """Render a report as JSON."""
    return json.dumps(report.to_dict(), indent=indent, ensure_ascii=False)


def render(report: ConsistencyReport, format: Union[ReportFormat, str] = ReportFormat.TEXT) -> str:
    """
    Render a report.

    Args:
        report: Report to render
        format: ReportFormat or one of "text", "html", "json"

    Raises:
        ValueError: for an unsupported format
    """
    fmt = ReportFormat.parse(format)
    if fmt == ReportFormat.TEXT:
        return render_text(report)
    elif fmt == ReportFormat.HTML:
        return render_html(report)
    elif fmt == ReportFormat.JSON:
        return render_json(report)
    raise ValueError(f"Unsupported format: {format}")


def generate_summary_report(report: ConsistencyReport, format: Union[ReportFormat, str] = 'text') -> str:
    """Render a report (text by default)."""
    return render(report, format)


class ReportExporter:
    """
    Writes rendered reports to files.

    Usage:
        exporter = ReportExporter()
        exporter.export(report, 'out/report.html', ReportFormat.HTML)
    """

    def export(
        self,
        report: ConsistencyReport,
        output_path: str,
        format: Union[ReportFormat, str] = ReportFormat.TEXT,
    ) -> str:
        """
        Render a report to a file.

        Returns:
            Path to exported file
        """
        content = render(report, format)
        os.makedirs(os.path.dirname(str(output_path)) or '.', exist_ok=True)
        with open(output_path, 'w', encoding='utf-8') as f:
            f.write(content)
        logger.info(f"Report written to {output_path}")
        return str(output_path)
