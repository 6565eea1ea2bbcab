"""Typer-based CLI entry point."""

from __future__ import annotations

import asyncio
import functools
import json
from pathlib import Path
from typing import Any, Dict, List, Optional

import typer
from rich import print
from rich.console import Console
from rich.table import Table

from findash.application.services.paginated_loader import PaginatedTransactionLoader
from findash.application.services.statistics import summarize
from findash.application.services.suggestions import SearchSuggestionIndex
from findash.application.services.strategy import choose_strategy
from findash.domain.models.core import Transaction
from findash.domain.models.query import DATE_RANGE_PRESETS, normalize
from findash.errors import FinDashError
from findash.infrastructure.rest_store import RestTransactionStore
from findash.settings.manager import SettingsManager
from findash.utils.console_logger import configure_cli_logging

app = typer.Typer(help="Browse personal-finance transactions with adaptive paging")
config_app = typer.Typer(help="Inspect and edit settings")
app.add_typer(config_app, name="config")

# Replaced in tests with an in-memory store.
store_factory = RestTransactionStore


def _handle_errors(func):
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except FinDashError as exc:
            typer.echo(f"Error: {exc}", err=True)
            raise typer.Exit(1) from exc

    return wrapper


def _settings(path: Optional[Path]) -> SettingsManager:
    manager = SettingsManager(path)
    manager.load()
    return manager


@app.command("list")
@_handle_errors
def list_transactions(
    base_url: Optional[str] = typer.Option(None, help="API root, e.g. https://host/api"),
    token: Optional[str] = typer.Option(None, help="Bearer token"),
    search: Optional[str] = typer.Option(None, help="Free-text search"),
    type_: List[str] = typer.Option([], "--type", help="income, expense or transfer"),
    category: List[str] = typer.Option([], help="Category id (repeatable)"),
    start: Optional[str] = typer.Option(None, help="Start date (ISO)"),
    end: Optional[str] = typer.Option(None, help="End date (ISO)"),
    preset: Optional[str] = typer.Option(None, help=f"One of: {', '.join(DATE_RANGE_PRESETS)}"),
    load_all: bool = typer.Option(False, "--all", help="Keep paging until every row is loaded"),
    suggest: Optional[str] = typer.Option(None, help="Print search suggestions matching this term"),
    settings_path: Optional[Path] = typer.Option(None, "--settings", help="settings.json to use"),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
) -> None:
    """Load transactions for a filter and print them."""

    configure_cli_logging(verbose)
    settings = _settings(settings_path)
    url = base_url or settings.base_url
    if not url:
        typer.echo("Error: no --base-url given and api.base_url is not set", err=True)
        raise typer.Exit(1)

    form: Dict[str, Any] = {
        "search": search,
        "types": type_,
        "categories": category,
        "startDate": start,
        "endDate": end,
        "dateRange": preset,
    }
    query = normalize(form)
    records, loader = asyncio.run(
        _load(url, token or settings.token, settings, query, load_all)
    )

    _print_records(records)
    stats = summarize(records)
    strategy = loader.strategy.value if loader.strategy else "-"
    print(
        f"[bold]{len(records)}[/bold] of {loader.pagination.total} loaded ({strategy}, "
        f"page {loader.pagination.page}/{loader.pagination.total_pages})  "
        f"income [green]{stats.income:.2f}[/green]  expenses [red]{stats.expenses:.2f}[/red]  "
        f"net {stats.net:.2f}"
    )
    if suggest is not None:
        index = SearchSuggestionIndex(
            limit=settings.suggestion_limit,
            min_chars=settings.suggestion_min_chars,
        )
        index.ingest(records)
        for hit in index.match(suggest):
            typer.echo(f"suggestion: {hit}")


async def _load(url, token, settings: SettingsManager, query, load_all: bool):
    async with store_factory(url, token=token, timeout=settings.request_timeout) as store:
        loader = PaginatedTransactionLoader(store, settings.loader_settings())
        await loader.load_initial(query)
        while load_all and loader.can_load_more():
            result = await loader.load_more()
            if result.drifted:
                await loader.load_initial(query)
        return list(loader.items), loader


def _print_records(records: List[Transaction]) -> None:
    table = Table(show_edge=False)
    table.add_column("Date")
    table.add_column("Description")
    table.add_column("Category")
    table.add_column("Type")
    table.add_column("Amount", justify="right")
    for record in records:
        table.add_row(
            record.date.date().isoformat() if record.date else "",
            record.description or record.payee or "",
            record.category or "",
            record.type.value,
            f"{record.signed_amount:.2f}",
        )
    Console().print(table)


@app.command()
@_handle_errors
def strategy(
    total: int = typer.Argument(..., min=0, help="Server-reported row count"),
    settings_path: Optional[Path] = typer.Option(None, "--settings", help="settings.json to use"),
) -> None:
    """Show which loading strategy a dataset of TOTAL rows would get."""

    decision = choose_strategy(total, _settings(settings_path).loader_settings())
    print(f"{decision.strategy.value} (page size {decision.page_size})")


@config_app.command("show")
@_handle_errors
def config_show(
    settings_path: Optional[Path] = typer.Option(None, "--settings"),
) -> None:
    """Print the effective settings."""

    settings = _settings(settings_path)
    print(f"[dim]{settings.path}[/dim]")
    for section in ("api", "loading", "search"):
        print(f"[bold]{section}[/bold]")
        for key, value in (settings.get(section) or {}).items():
            print(f"  {key} = {value!r}")


@config_app.command("set")
@_handle_errors
def config_set(
    key: str,
    value: str,
    settings_path: Optional[Path] = typer.Option(None, "--settings"),
) -> None:
    """Set a dotted KEY (e.g. loading.incremental_page_size) to VALUE."""

    settings = _settings(settings_path)
    try:
        parsed: Any = json.loads(value)
    except ValueError:
        parsed = value
    settings.set(key, parsed)
    print(f"[green]{key} = {parsed!r}")


if __name__ == "__main__":
    app()
