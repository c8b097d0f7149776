"""Command-line interface for reviewing imported bank transactions.

Each command opens one review session against the configured database. The
``review`` command keeps a session open in a prompt loop so selections,
batch operations and undo can be combined.
"""

from __future__ import annotations

import logging
import shlex
from datetime import datetime
from decimal import Decimal, InvalidOperation
from functools import wraps
from pathlib import Path
from typing import Optional

import click

from txreview.core.config import settings
from txreview.core.database import SessionLocal, init_db, session_scope
from txreview.core.exceptions import ReviewError
from txreview.core.models import ReviewStatus
from txreview.core.records import BankTransaction
from txreview.processing.filters import FilterCriteria
from txreview.processing.sorting import SortField, SortSpec
from txreview.services.import_service import import_bank_csv
from txreview.services.review_engine import ReviewEngine, ReviewView
from txreview.store.sql import SqlTransactionStore


def _configure_logging() -> None:
    level = logging.DEBUG if settings.DEBUG else getattr(logging, settings.LOG_LEVEL.upper(), logging.WARNING)
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


@click.group()
@click.option("--business", default=None, help="Business id to review (default: BUSINESS_ID setting)")
@click.pass_context
def main(ctx: click.Context, business: Optional[str]) -> None:
    """Review imported bank transactions before tax calculation."""
    _configure_logging()
    ctx.obj = {"business_id": business or settings.BUSINESS_ID}


def _parse_decimal(ctx, param, value: Optional[str]) -> Optional[Decimal]:
    if value is None:
        return None
    try:
        return Decimal(value)
    except InvalidOperation:
        raise click.BadParameter(f"'{value}' is not a number")


def filter_options(fn):
    """Shared filter/sort options for list-style commands."""
    options = [
        click.option("--search", "-s", default="", help="Case-insensitive description search"),
        click.option(
            "--status",
            type=click.Choice([s.value for s in ReviewStatus], case_sensitive=False),
            default=None,
            help="Only show this review status",
        ),
        click.option("--from", "date_from", type=click.DateTime(["%Y-%m-%d"]), default=None, help="Earliest date (inclusive)"),
        click.option("--to", "date_to", type=click.DateTime(["%Y-%m-%d"]), default=None, help="Latest date (inclusive)"),
        click.option("--min", "amount_min", callback=_parse_decimal, default=None, help="Minimum absolute amount"),
        click.option("--max", "amount_max", callback=_parse_decimal, default=None, help="Maximum absolute amount"),
        click.option(
            "--sort",
            "sort_field",
            type=click.Choice([f.value for f in SortField]),
            default=SortField.DATE.value,
            help="Sort column",
        ),
        click.option("--asc", is_flag=True, help="Sort ascending (default: descending)"),
    ]
    for option in reversed(options):
        fn = option(fn)
    return fn


def _criteria_from_options(
    search: str,
    status: Optional[str],
    date_from: Optional[datetime],
    date_to: Optional[datetime],
    amount_min: Optional[Decimal],
    amount_max: Optional[Decimal],
) -> FilterCriteria:
    return FilterCriteria(
        search_text=search,
        status=ReviewStatus(status.upper()) if status else None,
        date_from=date_from.date() if date_from else None,
        date_to=date_to.date() if date_to else None,
        amount_min=amount_min,
        amount_max=amount_max,
    )


def with_engine(fn):
    """Open a session, load the review engine and translate review errors."""

    @click.pass_context
    @wraps(fn)
    def wrapper(ctx: click.Context, *args, **kwargs):
        with session_scope(SessionLocal) as db:
            engine = ReviewEngine(SqlTransactionStore(db, ctx.obj["business_id"]))
            try:
                engine.load()
                return fn(engine, *args, **kwargs)
            except ReviewError as e:
                raise click.ClickException(str(e))

    return wrapper


def _resolve_id(engine: ReviewEngine, prefix: str) -> str:
    """Expand a short id (as printed by ``list``) to the full transaction id."""
    candidates = [tx.id for tx in engine.all_items if tx.id.startswith(prefix)]
    if len(candidates) == 1:
        return candidates[0]
    if not candidates:
        raise click.BadParameter(f"No transaction id starts with '{prefix}'")
    raise click.BadParameter(f"'{prefix}' matches {len(candidates)} transactions; use more characters")


def _format_row(tx: BankTransaction, selected: bool = False) -> str:
    marker = "*" if selected else " "
    return (
        f"{marker} {tx.id[:8]}  {tx.date.isoformat()}  {format(tx.amount, 'f'):>12}  "
        f"{tx.review_status.value:<8}  {tx.business_label:<8}  {tx.description[:40]}"
    )


def _echo_page(view: ReviewView) -> None:
    if view.is_empty_state:
        click.echo("No transactions imported yet. Run: txreview import-csv FILE")
        return
    if view.is_no_results:
        click.echo("No transactions match the current filters.")
        return
    for tx in view.current_page_items:
        click.echo(_format_row(tx, selected=tx.id in view.selected_ids))
    if view.criteria.is_active:
        click.echo(f"{view.result_count_text} (filtered from {view.total_count})")
    else:
        click.echo(view.result_count_text)


def _echo_summary(counts: dict[ReviewStatus, int]) -> None:
    total = sum(counts.values())
    reviewed = total - counts[ReviewStatus.PENDING]
    progress = reviewed / total if total else 0.0
    click.echo(f"Total:     {total}")
    click.echo(f"Pending:   {counts[ReviewStatus.PENDING]}")
    click.echo(f"Excluded:  {counts[ReviewStatus.EXCLUDED]}")
    click.echo(f"Skipped:   {counts[ReviewStatus.SKIPPED]}")
    click.echo(f"Reviewed:  {reviewed} ({progress:.0%})")


@main.command("init")
def init_command() -> None:
    """Create data directories and database tables."""
    for dir_path in (settings.DATA_DIR, settings.DB_DIR, settings.IMPORTS_DIR, settings.EXPORTS_DIR):
        dir_path.mkdir(parents=True, exist_ok=True)
        click.echo(f"  ✓ Created {dir_path}")
    init_db()
    click.echo(f"  ✓ Database ready at {settings.DB_DIR / 'review.db'}")


@main.command("import-csv")
@click.argument("file_path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.pass_context
def import_csv_command(ctx: click.Context, file_path: Path) -> None:
    """Import a Date,Description,Amount bank CSV as pending transactions."""
    with session_scope(SessionLocal) as db:
        try:
            result = import_bank_csv(db, file_path=file_path, business_id=ctx.obj["business_id"])
        except ReviewError as e:
            raise click.ClickException(str(e))
    click.echo(f"✓ Imported {result.created} transactions ({result.duplicates} duplicates skipped)")
    if not result.success:
        click.echo(f"{len(result.errors)} rows could not be imported:", err=True)
        for error in result.errors:
            click.echo(f"  - {error}", err=True)


@main.command("summary")
@click.pass_context
def summary_command(ctx: click.Context) -> None:
    """Show review progress counts."""
    with session_scope(SessionLocal) as db:
        try:
            counts = SqlTransactionStore(db, ctx.obj["business_id"]).status_counts()
        except ReviewError as e:
            raise click.ClickException(str(e))
    _echo_summary(counts)


@main.command("list")
@filter_options
@click.option("--page", "page_number", type=click.IntRange(min=1), default=1, help="Page number (1-based)")
@with_engine
def list_command(
    engine: ReviewEngine,
    search, status, date_from, date_to, amount_min, amount_max, sort_field, asc, page_number,
) -> None:
    """List transactions one page at a time."""
    engine.set_filter(_criteria_from_options(search, status, date_from, date_to, amount_min, amount_max))
    engine.set_sort(SortSpec(field=SortField(sort_field), ascending=asc))
    _echo_page(engine.go_to_page(page_number - 1))


@main.command("export")
@filter_options
@click.option("--format", "fmt", type=click.Choice(["csv", "json"]), default="csv", show_default=True)
@click.option("--output", "-o", type=click.Path(dir_okay=False, path_type=Path), required=True)
@with_engine
def export_command(
    engine: ReviewEngine,
    search, status, date_from, date_to, amount_min, amount_max, sort_field, asc, fmt, output,
) -> None:
    """Export every transaction matching the filters (all pages)."""
    engine.set_filter(_criteria_from_options(search, status, date_from, date_to, amount_min, amount_max))
    engine.set_sort(SortSpec(field=SortField(sort_field), ascending=asc))
    count = engine.export_json(output) if fmt == "json" else engine.export_csv(output)
    click.echo(f"✓ Exported {count} transactions to {output}")


@main.command("exclude")
@click.argument("transaction_id")
@click.option("--reason", "-r", required=True, help="Why this transaction is excluded")
@with_engine
def exclude_command(engine: ReviewEngine, transaction_id: str, reason: str) -> None:
    """Exclude a transaction from the tax calculation."""
    tx_id = _resolve_id(engine, transaction_id)
    engine.exclude(tx_id, reason)
    click.echo(f"✓ Excluded {tx_id[:8]}: {reason}")


@main.command("skip")
@click.argument("transaction_id")
@with_engine
def skip_command(engine: ReviewEngine, transaction_id: str) -> None:
    """Skip a transaction for now."""
    tx_id = _resolve_id(engine, transaction_id)
    engine.skip(tx_id)
    click.echo(f"✓ Skipped {tx_id[:8]}")


@main.command("flag")
@click.argument("transaction_id")
@click.option("--business/--personal", "is_business", required=True)
@with_engine
def flag_command(engine: ReviewEngine, transaction_id: str, is_business: bool) -> None:
    """Mark a transaction as business or personal."""
    tx_id = _resolve_id(engine, transaction_id)
    engine.toggle_business_flag(tx_id, is_business)
    click.echo(f"✓ Marked {tx_id[:8]} as {'business' if is_business else 'personal'}")


@main.command("history")
@click.argument("transaction_id")
@with_engine
def history_command(engine: ReviewEngine, transaction_id: str) -> None:
    """Show the recorded changes to one transaction."""
    tx_id = _resolve_id(engine, transaction_id)
    entries = engine.store.modification_history(tx_id)
    if not entries:
        click.echo(f"No changes recorded for {tx_id[:8]}")
        return
    for entry in entries:
        click.echo(
            f"{entry.modified_at:%Y-%m-%d %H:%M}  {entry.modification_type.value:<26}  "
            f"{entry.field_name}: {entry.previous_value or '-'} -> {entry.new_value or '-'}"
        )


REVIEW_HELP = """Commands:
  n / p                 next / previous page
  find TEXT             search descriptions (empty clears)
  status [STATUS]       filter by PENDING, EXCLUDED or SKIPPED (empty clears)
  sort FIELD [asc]      sort by date, amount or description
  sel ID                toggle selection
  all / pending / none  select all, all pending, or clear selection
  x ID REASON           exclude one transaction
  k ID                  skip one transaction
  biz ID / pers ID      mark one transaction business / personal
  B / P                 mark selection business / personal
  X REASON              exclude selection
  u                     undo last change
  csv PATH / json PATH  export filtered transactions
  sum                   show summary
  q                     quit"""


def _run_review_command(engine: ReviewEngine, words: list[str]) -> Optional[ReviewView]:
    cmd, args = words[0], words[1:]
    rest = " ".join(args)
    if cmd == "n":
        return engine.next_page()
    if cmd == "p":
        return engine.previous_page()
    if cmd == "find":
        return engine.set_search_text(rest)
    if cmd == "status":
        return engine.set_status_filter(ReviewStatus(rest.upper()) if rest else None)
    if cmd == "sort":
        return engine.sort_by(SortField(args[0]), ascending=args[1:] == ["asc"])
    if cmd == "sel":
        return engine.toggle_selection(_resolve_id(engine, args[0]))
    if cmd == "all":
        return engine.select_all()
    if cmd == "pending":
        return engine.select_all_pending()
    if cmd == "none":
        return engine.clear_selection()
    if cmd == "x":
        return engine.exclude(_resolve_id(engine, args[0]), " ".join(args[1:]))
    if cmd == "k":
        return engine.skip(_resolve_id(engine, args[0]))
    if cmd in ("biz", "pers"):
        return engine.toggle_business_flag(_resolve_id(engine, args[0]), cmd == "biz")
    if cmd == "B":
        return engine.batch_mark_business()
    if cmd == "P":
        return engine.batch_mark_personal()
    if cmd == "X":
        return engine.batch_exclude(rest)
    if cmd == "u":
        if not engine.can_undo():
            click.echo("Nothing to undo.")
            return None
        return engine.undo()
    if cmd in ("csv", "json"):
        path = Path(rest)
        count = engine.export_json(path) if cmd == "json" else engine.export_csv(path)
        click.echo(f"✓ Exported {count} transactions to {path}")
        return None
    if cmd == "sum":
        _echo_summary(engine.store.status_counts())
        return None
    click.echo(REVIEW_HELP)
    return None


@main.command("review")
@with_engine
def review_command(engine: ReviewEngine) -> None:
    """Interactive review session with selection, batch operations and undo."""
    _echo_page(engine.view())
    click.echo("Type ? for help.")
    while True:
        line = click.prompt("review", default="", show_default=False)
        try:
            words = shlex.split(line)
        except ValueError as e:
            click.echo(f"✗ {e}", err=True)
            continue
        if not words:
            continue
        if words[0] == "q":
            break
        try:
            view = _run_review_command(engine, words)
        except (ReviewError, ValueError, IndexError, click.BadParameter) as e:
            click.echo(f"✗ {e}", err=True)
            continue
        if view is not None:
            _echo_page(view)
            if view.selected_count:
                click.echo(f"{view.selected_count} selected")
            if view.can_undo:
                click.echo(f"(u to undo: {view.undo_label})")


if __name__ == "__main__":
    main()
