"""Command line interface for claimcheck."""

from __future__ import annotations

import json
import logging
from dataclasses import replace
from pathlib import Path
from typing import Any, List

import typer
from rich.console import Console
from rich.table import Table

from claimcheck.config import AppConfig
from claimcheck.errors import ClaimCheckError
from claimcheck.pipeline import ClaimPipeline
from claimcheck.utils.files import encode_file, is_url


console = Console()
app = typer.Typer(help="claimcheck - retrieval-grounded insurance claim decisions")


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="[%(levelname)s] %(message)s")


def _to_reference(value: str) -> Any:
    """Send local files inline; pass URLs through untouched."""
    if is_url(value):
        return value
    path = Path(value).expanduser()
    if not path.is_file():
        raise typer.BadParameter(f"Not a URL or readable file: {value}")
    return {"filename": path.name, "contentBase64": encode_file(path)}


def _print_result(envelope: dict[str, Any]) -> None:
    meta = envelope["meta"]
    results = envelope["results"]

    console.print(
        f"Indexed [bold]{meta['chunks_indexed']}[/bold] chunks, used top {meta['top_k']} "
        f"({meta['model']})"
    )
    console.print(f"Decision: [bold]{results['decision']}[/bold]")
    amount = results.get("amount")
    console.print(f"Amount: {amount if amount is not None else '-'}")
    if results.get("explanation"):
        console.print(results["explanation"])

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Similarity")
    table.add_column("Source")
    table.add_column("Chunk")
    table.add_column("Clause")
    for entry in results["justification"]:
        clause = entry["clause"].replace("\n", " ")
        table.add_row(
            f"{entry['similarity']:.4f}",
            str(entry["source"]),
            str(entry["chunk_index"]),
            clause[:180],
        )
    console.print(table)


@app.command()
def run(
    query: str = typer.Argument(..., help="Claim query, e.g. '46M, knee surgery, Pune, 3-month policy'"),
    documents: List[str] = typer.Argument(..., help="Policy document URLs or local files."),
    top_k: int = typer.Option(AppConfig().top_k, help="Number of clauses used as evidence"),
    window_size: int = typer.Option(AppConfig().window_size, help="Chunk size in characters"),
    overlap: int = typer.Option(AppConfig().overlap, help="Chunk overlap"),
    chat_model: str = typer.Option(AppConfig().chat_model, help="Chat model name"),
    as_json: bool = typer.Option(False, "--json", help="Print the raw response envelope"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Decide a claim against one or more policy documents."""
    _setup_logging(verbose)
    try:
        config = replace(
            AppConfig.from_env(),
            top_k=top_k,
            window_size=window_size,
            overlap=overlap,
            chat_model=chat_model,
        )
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc

    references = [_to_reference(value) for value in documents]
    pipeline = ClaimPipeline.from_config(config)
    try:
        envelope = pipeline.run(query, references)
    except ClaimCheckError as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1) from exc

    if as_json:
        # Inline payloads are bulky; echo the arguments as given
        envelope["input"]["documents"] = documents
        console.print_json(json.dumps(envelope))
        return
    _print_result(envelope)


@app.command()
def serve(
    host: str = typer.Option("127.0.0.1", help="Host interface"),
    port: int = typer.Option(3000, help="Server port"),
) -> None:
    """Start the HTTP webhook."""
    try:
        import uvicorn
    except ImportError as exc:  # pragma: no cover - defensive
        raise typer.BadParameter(
            "uvicorn is not installed. Install it with \"python -m pip install uvicorn\""
        ) from exc

    from claimcheck.web.app import app as web_app

    console.print(f"Starting claim webhook on http://{host}:{port}")
    uvicorn.run(
        web_app,
        host=host,
        port=port,
        reload=False,
        log_level="info",
    )
