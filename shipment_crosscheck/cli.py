"""
Shipment Crosscheck CLI

Command-line interface over the comparison and validation engine. Input
files hold extracted documents as JSON, one payload or a list of payloads
per file:

    {
      "documentName": "invoice.pdf",
      "documentType": "invoice",
      "fields": {"identifiers": {"awbNumber": {"value": "098-80828764", "confidence": 0.95}}}
    }

Examples:

    # Compare a shipment's documents, print a text report
    shipment-crosscheck compare invoice.json hawb.json boe.json

    # Write an HTML report with custom thresholds
    shipment-crosscheck compare *.json -f html -o report.html -c crosscheck.yaml

    # Per-document quality and business rules
    shipment-crosscheck validate invoice.json boe.json

    # Check an HSN code, or compare two
    shipment-crosscheck hsn 84713010 84713090
"""

import json
import sys
from datetime import datetime
from pathlib import Path
from typing import List, Optional

import click
from loguru import logger
from rich.console import Console
from rich.table import Table

from . import __version__
from .comparison.field_comparator import InsufficientDocumentsError
from .comparison.models import ConsistencyReport, RiskLevel
from .config import ConfigError, CrosscheckConfig, load_config
from .doctypes.document import Document
from .parser.field_mapper import DEFAULT_REGISTRY
from .parser.validators import DocumentFormatError
from .review.export import ReportExporter, ReportFormat, render
from .review.report_builder import ReportBuilder
from .validation.business_rules import BusinessRuleEngine, rule_compliance
from .validation.document_rules import validate_document_type_data
from .validation.hsn_codes import HSNCodeValidator
from .validation.quality import assess_document_quality
from .validation.relationships import validate_shipment_consistency

INSUFFICIENT_DOCUMENTS_MESSAGE = (
    "Need at least two successfully extracted documents to compare a shipment"
)

RISK_STYLES = {
    RiskLevel.LOW: 'bold green',
    RiskLevel.MEDIUM: 'bold yellow',
    RiskLevel.HIGH: 'bold red',
}


# Configure logging
def setup_logging(verbose: bool = False, log_file: Optional[Path] = None):
    """Configure loguru logging."""
    # Remove default handler
    logger.remove()

    # Console logging
    log_level = "DEBUG" if verbose else "INFO"
    logger.add(
        sys.stderr,
        format="<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{message}</cyan>",
        level=log_level,
        colorize=True
    )

    # File logging
    if log_file:
        logger.add(
            log_file,
            format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} | {message}",
            level="DEBUG",
            rotation="10 MB"
        )


def load_documents(paths: List[Path]) -> List[Document]:
    """
    Load extracted documents from JSON files.

    Raises:
        DocumentFormatError: if a file is not valid JSON or holds a bad payload
    """
    documents = []
    for path in paths:
        try:
            with open(path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise DocumentFormatError(f"{path} is not valid JSON: {e}") from e

        payloads = data if isinstance(data, list) else [data]
        for payload in payloads:
            documents.append(Document.from_dict(payload))
        logger.debug(f"Loaded {len(payloads)} document(s) from {path}")
    return documents


def _load_config(config_path: Optional[Path]) -> CrosscheckConfig:
    return load_config(config_path) if config_path else CrosscheckConfig()


def _print_summary(report: ConsistencyReport, console: Console):
    """Print a summary table of the field comparison."""
    table = Table(title="Field Comparison")

    table.add_column("Field", style="cyan")
    table.add_column("Category")
    table.add_column("Status", style="bold")
    table.add_column("Result")
    table.add_column("Docs", justify="right")

    for comparison in report.field_comparisons:
        status = "[green]✓" if comparison.is_consistent else "[red]✗"
        table.add_row(
            comparison.display_name,
            comparison.category.value,
            status,
            comparison.discrepancy_type.value,
            str(len(comparison.values)),
        )

    summary = report.summary
    console.print()
    console.print(table)
    console.print()
    console.print(f"[bold]Documents:[/] {summary.total_documents}")
    console.print(f"[bold]Consistency:[/] {summary.overall_consistency_score:.1%}")
    style = RISK_STYLES[summary.risk_level]
    console.print(f"[bold]Risk level:[/] [{style}]{summary.risk_level.display_name}[/]")
    console.print(f"[bold red]Critical issues:[/] {len(report.critical_issues)}")


@click.group()
@click.version_option(__version__, prog_name='shipment-crosscheck')
def cli():
    """Shipment Crosscheck - compare extracted trade documents for consistency."""


@cli.command()
@click.argument('files', nargs=-1, required=True, type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    '--format', '-f',
    'report_format',
    type=click.Choice([f.value for f in ReportFormat]),
    default='text',
    help='Report format'
)
@click.option(
    '--output', '-o',
    'output_path',
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help='Write the report to a file instead of stdout'
)
@click.option(
    '--config', '-c',
    'config_path',
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help='Path to YAML threshold configuration'
)
@click.option(
    '--timestamp/--no-timestamp',
    default=True,
    help='Stamp the report with the current time'
)
@click.option(
    '--verbose', '-v',
    is_flag=True,
    help='Enable verbose logging'
)
@click.option(
    '--log-file',
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help='Write logs to file'
)
def compare(
    files: List[Path],
    report_format: str,
    output_path: Optional[Path],
    config_path: Optional[Path],
    timestamp: bool,
    verbose: bool,
    log_file: Optional[Path],
):
    """Compare extracted documents of one shipment and report discrepancies."""
    setup_logging(verbose=verbose, log_file=log_file)
    console = Console(stderr=True)

    try:
        config = _load_config(config_path)
        documents = load_documents(list(files))
        stamp = datetime.now().isoformat(timespec='seconds') if timestamp else None
        report = ReportBuilder(config).build(documents, timestamp=stamp)
    except InsufficientDocumentsError as e:
        logger.debug(str(e))
        console.print(f"[bold red]Error: {INSUFFICIENT_DOCUMENTS_MESSAGE}[/]")
        raise SystemExit(1)
    except (DocumentFormatError, ConfigError) as e:
        console.print(f"[bold red]Error: {e}[/]")
        if verbose:
            logger.exception("Full traceback:")
        raise SystemExit(1)

    if output_path:
        ReportExporter().export(report, str(output_path), report_format)
        _print_summary(report, console)
        console.print(f"[green]✓ Report written to: {output_path}[/]")
    else:
        click.echo(render(report, report_format), nl=False)


@cli.command()
@click.argument('files', nargs=-1, required=True, type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    '--config', '-c',
    'config_path',
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help='Path to YAML threshold configuration'
)
@click.option(
    '--json-output',
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help='Write detailed JSON results'
)
@click.option(
    '--verbose', '-v',
    is_flag=True,
    help='Enable verbose logging'
)
def validate(
    files: List[Path],
    config_path: Optional[Path],
    json_output: Optional[Path],
    verbose: bool,
):
    """Check each document's quality, required fields and business rules."""
    setup_logging(verbose=verbose)
    console = Console()

    try:
        config = _load_config(config_path)
        documents = load_documents(list(files))
    except (DocumentFormatError, ConfigError) as e:
        console.print(f"[bold red]Error: {e}[/]")
        raise SystemExit(1)

    engine = BusinessRuleEngine(config)
    table = Table(title="Document Quality")
    table.add_column("Document", style="cyan")
    table.add_column("Type")
    table.add_column("Quality", justify="right")
    table.add_column("Rules", justify="right")
    table.add_column("Missing Required", justify="right")

    details = []
    for document in documents:
        quality = assess_document_quality(document, config)
        rules = engine.evaluate_document(document)
        type_valid, type_issues = validate_document_type_data(document)
        table.add_row(
            document.name,
            document.doc_type.value,
            f"{quality.score:.0%}",
            f"{rule_compliance(rules):.0%}",
            str(len(type_issues)),
        )
        details.append({
            'document_name': document.name,
            'document_type': document.doc_type.value,
            'quality': quality.to_dict(),
            'business_rules': [r.to_dict() for r in rules],
            'document_type_valid': type_valid,
            'document_type_issues': type_issues,
        })

    console.print(table)
    for entry in details:
        for issue in entry['document_type_issues']:
            console.print(f"[yellow]{entry['document_name']}: {issue}[/]")
        for recommendation in entry['quality']['recommendations']:
            console.print(f"{entry['document_name']}: {recommendation}")

    output = {'documents': details}
    if len(documents) >= 2:
        relationship = validate_shipment_consistency(documents, config)
        output['shipment'] = relationship.to_dict()
        console.print()
        status = "[green]✓ consistent" if relationship.is_valid else "[red]✗ issues found"
        console.print(f"[bold]Shipment:[/] {status} (confidence {relationship.confidence:.0%})")
        for issue in relationship.issues:
            console.print(f"  - {issue}")

    if json_output:
        with open(json_output, 'w', encoding='utf-8') as f:
            json.dump(output, f, indent=2, ensure_ascii=False, default=str)
        console.print(f"Results written to: {json_output}")


@cli.command()
@click.argument('code')
@click.argument('customs_code', required=False)
@click.option('--description', '-d', default=None, help='Product description for hints')
def hsn(code: str, customs_code: Optional[str], description: Optional[str]):
    """Validate an HSN code, or compare a commercial code with a customs code."""
    setup_logging()
    console = Console()
    validator = HSNCodeValidator()

    result = validator.validate_code(code)
    status = "[green]valid" if result.is_valid else "[red]invalid"
    console.print(f"[bold]{code}[/]: {status}[/] ({result.code_level.value}, confidence {result.confidence:.0%})")
    if result.product_category:
        console.print(f"  Category: {result.product_category}")
    for issue in result.issues:
        console.print(f"  [red]Issue:[/] {issue}")
    for suggestion in result.suggestions:
        console.print(f"  {suggestion}")

    if customs_code:
        mapping = validator.map_codes(code, customs_code, description)
        status = "[green]consistent" if mapping.is_consistent else "[red]inconsistent"
        console.print(f"[bold]Mapping:[/] {status}[/] ({mapping.discrepancy_type.value})")
        console.print(f"  {mapping.explanation}")
        for recommendation in mapping.recommendations:
            console.print(f"  - {recommendation}")
    elif description:
        suggestions, reasoning = validator.suggest_codes(description)
        for suggestion in suggestions:
            console.print(f"  Suggested {suggestion.code}: {suggestion.description} ({suggestion.confidence:.0%})")
        for reason in reasoning:
            console.print(f"  {reason}")

    if not result.is_valid:
        raise SystemExit(1)


@cli.command()
def fields():
    """List the canonical fields compared across documents."""
    console = Console()
    table = Table(title="Canonical Fields")
    table.add_column("Field", style="cyan")
    table.add_column("Category")
    table.add_column("Comparison")
    table.add_column("Tolerance", justify="right")
    table.add_column("Document types")

    for mapping in DEFAULT_REGISTRY:
        types = ', '.join(t.value for t in mapping.paths)
        tolerance = '' if mapping.tolerance is None else str(mapping.tolerance)
        table.add_row(
            mapping.name,
            mapping.category.value,
            mapping.comparison_type.value,
            tolerance,
            types,
        )
    console.print(table)


if __name__ == "__main__":
    cli()
