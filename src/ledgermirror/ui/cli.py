from __future__ import annotations

from datetime import datetime
import json
import sys
from typing import NoReturn

from dotenv import load_dotenv
from loguru import logger
from rich.console import Console
from rich.table import Table
import typer

from ledgermirror.adapters.db.facade import DB, PersistenceError
from ledgermirror.config import AppConfig, load_config_from_env
from ledgermirror.core.analytics import AnalysisReport, GroupBreakdown
from ledgermirror.infra.clients.feed import FeedClient, FeedClientError
from ledgermirror.services.reporting import build_period_report, get_database_overview
from ledgermirror.tools.sync.sync_tool import SyncTool
from ledgermirror.ui.progress import ConsoleProgressNotifier

# Load environment variables from .env
load_dotenv()

app = typer.Typer(
    help="ledgermirror: mirror a transaction feed locally and report on it.",
    no_args_is_help=True,
)

console = Console()
err_console = Console(stderr=True)

DATE_FORMATS = ["%Y-%m-%d"]


def _configure_logging(level: str) -> None:
    logger.remove()
    logger.add(
        sys.stderr,
        format="{time:YYYY-MM-DD HH:mm:ss} [{level}] {name}: {message}",
        level=level,
    )


def _config(ctx: typer.Context) -> AppConfig:
    return ctx.ensure_object(dict)["config"]


def _open_db(config: AppConfig) -> DB:
    db = DB(config.database_url)
    db.create_schema()
    return db


def _resolve_user_id(user_id: str | None, config: AppConfig) -> str:
    resolved = user_id or config.user_id
    if not resolved:
        raise typer.BadParameter(
            "provide --user-id or set LEDGERMIRROR_USER_ID", param_hint="--user-id"
        )
    return resolved


def _fail(message: str) -> NoReturn:
    err_console.print(f"[red]Error:[/red] {message}", highlight=False)
    raise typer.Exit(code=1)


@app.callback()
def main_callback(ctx: typer.Context) -> None:
    """Load configuration and set up logging."""
    try:
        config = load_config_from_env()
    except ValueError as e:
        _fail(str(e))
    _configure_logging(config.log_level)
    ctx.ensure_object(dict)["config"] = config


@app.command("init-db")
def init_db(ctx: typer.Context) -> None:
    """Create the local database schema."""
    config = _config(ctx)
    try:
        _open_db(config)
    except PersistenceError as e:
        _fail(str(e))
    console.print(f"Database ready at {config.database_url}")


@app.command("sync")
def sync(
    ctx: typer.Context,
    user_id: str | None = typer.Option(None, help="Feed user id to mirror"),
) -> None:
    """Fetch transactions newer than the local copy and store them."""
    config = _config(ctx)
    resolved_user = _resolve_user_id(user_id, config)

    try:
        feed = FeedClient(config.require_api_url())
        db = _open_db(config)
        summary = SyncTool(feed, db).sync(resolved_user, ConsoleProgressNotifier())
    except (FeedClientError, PersistenceError, ValueError) as e:
        _fail(str(e))

    console.print(
        f"Sync finished: [bold]{summary.new_count}[/bold] new transactions, "
        f"{summary.total_in_db} stored."
    )


@app.command("overview")
def overview(ctx: typer.Context) -> None:
    """Show how many transactions are stored and how recent they are."""
    config = _config(ctx)
    try:
        info = get_database_overview(_open_db(config))
    except PersistenceError as e:
        _fail(str(e))

    console.print(f"Total transactions: {info.total_transactions}")
    console.print(f"Last update: {info.last_update}")
    if info.oldest_transaction:
        console.print(f"Oldest transaction: {info.oldest_transaction}")


def _group_table(title: str, groups: dict[str, GroupBreakdown]) -> Table:
    table = Table(title=title)
    for column in ("Name", "Count", "Buy qty", "Buy total", "Sell qty", "Sell total"):
        table.add_column(column, justify="left" if column == "Name" else "right")
    for group in sorted(groups.values(), key=lambda g: g.name):
        table.add_row(
            group.name,
            str(group.count),
            f"{group.buy_qty:g}",
            f"{group.buy_total:.2f}",
            f"{group.sell_qty:g}",
            f"{group.sell_total:.2f}",
        )
    return table


def _render_report(report: AnalysisReport) -> None:
    stats = report.global_stats
    console.print(f"Transactions: {stats.count}")
    console.print(f"Total bought: {stats.total_buy:.2f}")
    console.print(f"Total sold: {stats.total_sell:.2f}")
    console.print(f"Net profit: {stats.net_profit:.2f}")
    if report.by_item:
        console.print(_group_table("By item", report.by_item))
    if report.by_type:
        console.print(_group_table("By type", report.by_type))


@app.command("report")
def report(
    ctx: typer.Context,
    start: datetime = typer.Option(..., formats=DATE_FORMATS, help="First day (UTC)"),
    end: datetime = typer.Option(..., formats=DATE_FORMATS, help="Last day (UTC)"),
    user_id: str | None = typer.Option(None, help="User whose side is counted"),
    as_json: bool = typer.Option(False, "--json", help="Print the report as JSON"),
) -> None:
    """Aggregate stored transactions for a date range."""
    config = _config(ctx)
    resolved_user = _resolve_user_id(user_id, config)

    try:
        result = build_period_report(
            _open_db(config), resolved_user, start.date(), end.date()
        )
    except (PersistenceError, ValueError) as e:
        _fail(str(e))

    if as_json:
        typer.echo(json.dumps(result.to_dict(), indent=2))
    else:
        _render_report(result)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
