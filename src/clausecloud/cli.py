"""
Command-line interface for ClauseCloud.
"""

import asyncio
import json
import mimetypes
from pathlib import Path
from typing import Optional

import click
import structlog

from clausecloud.config import get_settings
from clausecloud.exceptions import ClauseCloudError
from clausecloud.logging_setup import setup_logging

logger = structlog.get_logger(__name__)


def _content_type(path: Path) -> str:
    guessed, _ = mimetypes.guess_type(path.name)
    return guessed or "application/octet-stream"


@click.group()
@click.option("--debug", is_flag=True, help="Enable debug mode")
@click.pass_context
def cli(ctx: click.Context, debug: bool) -> None:
    """ClauseCloud: contract review assistant."""
    ctx.ensure_object(dict)
    ctx.obj["debug"] = debug

    settings = get_settings()
    setup_logging("DEBUG" if debug else settings.log_level, settings.log_json)


# =========================================================================
# Server Commands
# =========================================================================


@cli.command()
@click.option("--host", default=None, help="Host to bind to (default: API_HOST)")
@click.option("--port", default=None, type=int, help="Port to bind to (default: API_PORT)")
@click.option("--reload", is_flag=True, help="Enable auto-reload")
def serve(host: Optional[str], port: Optional[int], reload: bool) -> None:
    """Start the API server."""
    import uvicorn

    settings = get_settings()
    host = host or settings.api_host
    port = port or settings.api_port

    click.echo(f"Starting ClauseCloud API server on {host}:{port}")

    uvicorn.run(
        "clausecloud.api.main:app",
        host=host,
        port=port,
        reload=reload,
        log_level=settings.log_level.lower(),
    )


# =========================================================================
# Contract Commands
# =========================================================================


@cli.command()
@click.argument("contract_path", type=click.Path(exists=True, dir_okay=False))
def extract(contract_path: str) -> None:
    """Print the text extracted from a contract file."""
    from clausecloud.services.text_extractor import get_text_extractor

    path = Path(contract_path)

    try:
        text = asyncio.run(
            get_text_extractor().extract(path.read_bytes(), _content_type(path))
        )
    except ClauseCloudError as e:
        raise click.ClickException(e.message) from e

    click.echo(text)


@cli.command()
@click.argument("contract_path", type=click.Path(exists=True, dir_okay=False))
@click.option("--output", "-o", type=click.Path(), help="Output file for the analysis JSON")
def analyze(contract_path: str, output: Optional[str]) -> None:
    """Extract and analyze a contract file."""
    from clausecloud.services.contract_service import get_contract_service

    path = Path(contract_path)
    service = get_contract_service()

    click.echo(f"Analyzing {path.name}...")

    try:
        contract_id, analysis = asyncio.run(
            service.analyze_upload(path.read_bytes(), path.name, _content_type(path))
        )
    except ClauseCloudError as e:
        raise click.ClickException(e.message) from e

    click.echo(f"Risk: {analysis.get('riskLevel', 'unknown')} (score {analysis.get('riskScore', '?')})")

    rendered = json.dumps(analysis, indent=2, ensure_ascii=False)
    if output:
        Path(output).write_text(rendered, encoding="utf-8")
        click.echo(f"\nAnalysis written to: {output}")
    else:
        click.echo(rendered)

    logger.info("cli_analysis_complete", contract_id=contract_id, file=path.name)


if __name__ == "__main__":
    cli()
