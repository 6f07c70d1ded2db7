from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from ..config import AppConfig, dump_config
from ..engine import ConversionEngine
from ..errors import GatewayError
from ..logging import configure_logging
from ..models import ConversionOptions, ConversionRequest, ConversionType
from ..settings import prepare_config

console = Console()

app = typer.Typer(help="PDF conversion gateway: convert, merge and serve documents as PDF")


def _load_config(path: Path | None) -> AppConfig:
    config = prepare_config(config_path=path)
    configure_logging(config.runtime.log_level, json_logs=config.runtime.json_logs)
    return config


@app.command()
def serve(
    config: Path | None = typer.Option(None, "--config", help="Path to config.toml"),
    host: str | None = typer.Option(None, "--host", help="Bind address"),
    port: int | None = typer.Option(None, "--port", min=1, max=65535, help="Listen port"),
) -> None:
    """Run the HTTP API with uvicorn."""

    import uvicorn

    from ..api import create_app

    cfg = _load_config(config)
    try:
        api = create_app(cfg)
    except RuntimeError as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(1) from exc
    uvicorn.run(api, host=host or cfg.api.host, port=port or cfg.api.port, log_config=None)


@app.command()
def convert(
    files: list[Path] = typer.Argument(None, help="Input documents, merged in the given order"),
    url: str | None = typer.Option(None, "--url", help="Render this web page instead of files"),
    conversion_type: str | None = typer.Option(None, "--type", "-t", help="Conversion type id"),
    output: Path | None = typer.Option(None, "--output", "-o", help="Where to write the PDF"),
    landscape: bool = typer.Option(False, "--landscape", help="Landscape orientation"),
    flatten: bool = typer.Option(False, "--flatten", help="Flatten form fields (office documents)"),
    merge: bool = typer.Option(False, "--merge", help="Let the remote engine merge office documents"),
    print_background: bool = typer.Option(False, "--print-background", help="Print CSS backgrounds"),
    config: Path | None = typer.Option(None, "--config", help="Path to config.toml"),
) -> None:
    """Convert documents (or a URL) into a single PDF."""

    cfg = _load_config(config)
    options = ConversionOptions(
        flatten=flatten, merge=merge, landscape=landscape, print_background=print_background
    )
    try:
        if url:
            request = ConversionRequest.for_url(url, options)
        else:
            if not files:
                console.print("[red]Nothing to convert[/red]: pass files or --url")
                raise typer.Exit(2)
            payloads = [(path.name, path.read_bytes()) for path in files]
            request = ConversionRequest.from_uploads(ConversionType.parse(conversion_type), payloads, options)
    except (GatewayError, OSError) as exc:
        console.print(f"[red]Invalid input[/red]: {exc}")
        raise typer.Exit(2) from exc

    engine = ConversionEngine.from_config(cfg, start_sweeper=False)
    try:
        deliverable = engine.convert(request)
    except GatewayError as exc:
        console.print(f"[red]Conversion failed[/red]: {exc.code} - {exc}")
        raise typer.Exit(1) from exc
    finally:
        engine.shutdown()

    target = output or Path(deliverable.filename)
    target.write_bytes(deliverable.content)
    console.print(f"[green]Success[/green]: {deliverable.item_count} item(s) -> {target} ({deliverable.size_bytes} bytes)")


@app.command()
def sweep(config: Path | None = typer.Option(None, "--config", help="Path to config.toml")) -> None:
    """Delete sessions that outlived their retention window."""

    cfg = _load_config(config)
    engine = ConversionEngine.from_config(cfg, start_sweeper=False)
    try:
        removed = engine.sweep()
    finally:
        engine.shutdown()
    console.print(f"Removed {len(removed)} expired session(s).")


@app.command()
def sessions(config: Path | None = typer.Option(None, "--config", help="Path to config.toml")) -> None:
    """List staged sessions on disk."""

    cfg = _load_config(config)
    engine = ConversionEngine.from_config(cfg, start_sweeper=False)
    try:
        records = engine.store.list_sessions()
    finally:
        engine.shutdown()
    if not records:
        console.print("No sessions found.")
        raise typer.Exit()
    table = Table(title="Sessions")
    table.add_column("Session ID")
    table.add_column("Status")
    table.add_column("Items")
    table.add_column("Created")
    table.add_column("Result")
    for record in records:
        table.add_row(
            record.session_id,
            record.status.value,
            str(len(record.items)),
            record.created_at or "-",
            record.result_name or "-",
        )
    console.print(table)


@app.command("config")
def show_config(config: Path | None = typer.Option(None, "--config", help="Path to config.toml")) -> None:
    """Print the effective configuration."""

    console.print_json(dump_config(_load_config(config)))


@app.command()
def health(config: Path | None = typer.Option(None, "--config", help="Path to config.toml")) -> None:
    """Check that the remote conversion engine answers."""

    cfg = _load_config(config)
    engine = ConversionEngine.from_config(cfg, start_sweeper=False)
    try:
        available = engine.remote_available()
    finally:
        engine.shutdown()
    if available:
        console.print(f"[green]Remote available[/green]: {cfg.remote.base_url}")
        return
    console.print(f"[red]Remote unavailable[/red]: {cfg.remote.base_url}")
    raise typer.Exit(1)


if __name__ == "__main__":
    app()
