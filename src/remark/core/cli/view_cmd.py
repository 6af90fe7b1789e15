"""remark feed / calendar / show — read-only views of the journal."""

from __future__ import annotations

import asyncio

import click
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from .common import day_argument, load_config, open_store


@click.command()
@click.option("--pages", type=click.IntRange(min=1), default=1, show_default=True, help="Pages of days to list.")
@click.option("--real-only", is_flag=True, help="Only list days that have an entry.")
@click.pass_context
def feed(ctx: click.Context, pages: int, real_only: bool) -> None:
    """List recent days, newest first."""
    config = load_config(ctx)
    asyncio.run(_feed(config, pages, real_only))


async def _feed(config, pages: int, real_only: bool) -> None:
    from remark.feed.dayid import format_mdy
    from remark.feed.engine import FeedEngine
    from remark.feed.models import Resolution

    store = await open_store(config)
    settings = config.validated()
    engine = FeedEngine(
        store,
        page_size=settings.feed.page_size,
        days_window=settings.feed.days_window,
        real_only=real_only or settings.feed.real_only,
    )
    async with engine:
        for _ in range(pages - 1):
            engine.load_more()
        # Everything listed counts as visible.
        engine.on_viewable_items_changed(engine.sequence.days)
        await engine.settle()

        table = Table(title=f"Remark — {len(engine.data)} day(s)")
        table.add_column("Day")
        table.add_column("Title")
        table.add_column("Cover", overflow="fold")
        for day_id in engine.data:
            state = engine.cache.resolution(day_id)
            title = escape(engine.get_title(day_id) or "")
            if state is Resolution.UNRESOLVED:
                title = "[dim]?[/dim]"
            elif state is Resolution.ABSENT:
                title = "[dim]—[/dim]"
            table.add_row(format_mdy(day_id), title, escape(engine.get_cover(day_id) or ""))
        Console().print(table)


@click.command()
@click.option("--months", type=click.IntRange(min=1), default=None, help="Months to show (default from config).")
@click.pass_context
def calendar(ctx: click.Context, months: int | None) -> None:
    """Show month grids; days with a cover are starred."""
    config = load_config(ctx)
    if months is not None:
        config.set("calendar.initial_months", months)
    asyncio.run(_calendar(config))


async def _calendar(config) -> None:
    from remark.feed.calendar import WEEKDAYS
    from remark.feed.screen import FeedScreen

    config.set("view.initial_mode", "calendar")
    store = await open_store(config)
    console = Console()
    async with FeedScreen(store, config) as screen:
        for month in screen.month_list:
            table = Table(title=month.label, show_lines=False)
            for name in WEEKDAYS:
                table.add_column(name, justify="right")
            cells = screen.calendar_cells(month)
            for week in range(6):
                row = []
                for cell in cells[week * 7 : week * 7 + 7]:
                    text = str(cell.day_of_month)
                    if cell.cover_ref:
                        text += "*"
                    if not cell.in_current_month or cell.is_future:
                        text = f"[dim]{text}[/dim]"
                    if cell.is_today:
                        text = f"[bold reverse]{text}[/bold reverse]"
                    row.append(text)
                table.add_row(*row)
            console.print(table)


@click.command()
@click.argument("day", callback=day_argument)
@click.pass_context
def show(ctx: click.Context, day: str) -> None:
    """Print one day's entry."""
    config = load_config(ctx)
    asyncio.run(_show(config, day))


async def _show(config, day: str) -> None:
    from remark.feed.dayid import format_mdy

    store = await open_store(config)
    record = await store.get_by_id(day)
    console = Console()
    if record is None:
        console.print(f"No entry for {format_mdy(day)}.")
        return

    lines = []
    if record.detail_cover:
        lines.append(f"Cover: {record.detail_cover}")
    for photo in record.photos:
        lines.append(f"Photo: {photo}")
    if record.markdown_text:
        lines.append("")
        lines.append(record.markdown_text)
    title = f"{format_mdy(day)}  {record.title or ''}".strip()
    console.print(Panel(escape("\n".join(lines)) or "(empty)", title=escape(title)))
