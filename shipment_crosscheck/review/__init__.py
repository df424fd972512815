"""
Reporting

Builds the merged consistency report and renders it as text, HTML or JSON.
"""

from .report_builder import ReportBuilder, ShipmentAssessment
from .text_report import render_text
from .html_preview import HTMLReportGenerator, PreviewConfig, render_html
from .export import (
    ReportExporter,
    ReportFormat,
    render,
    render_json,
    generate_summary_report,
)

__all__ = [
    'ReportBuilder',
    'ShipmentAssessment',
    'render_text',
    'HTMLReportGenerator',
    'PreviewConfig',
    'render_html',
    'ReportExporter',
    'ReportFormat',
    'render',
    'render_json',
    'generate_summary_report',
]
