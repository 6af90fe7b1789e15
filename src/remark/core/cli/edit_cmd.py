"""remark put / delete — write entries to the local store."""

from __future__ import annotations

import asyncio

import click

from .common import day_argument, load_config, open_store


@click.command()
@click.argument("day", callback=day_argument)
@click.option("--title", default=None, help="Entry title.")
@click.option("--cover", default=None, help="Full-resolution cover reference.")
@click.option("--thumb", default=None, help="Thumbnail cover reference.")
@click.option("--text", "markdown_text", default=None, help="Markdown body.")
@click.option("--photo", "photos", multiple=True, help="Photo reference (repeatable; replaces existing photos).")
@click.pass_context
def put(
    ctx: click.Context,
    day: str,
    title: str | None,
    cover: str | None,
    thumb: str | None,
    markdown_text: str | None,
    photos: tuple[str, ...],
) -> None:
    """Create or update the entry for DAY, merging the given fields."""
    from remark.feed.dayid import is_future, to_day_id, today_utc

    if is_future(day, to_day_id(today_utc())):
        raise click.BadParameter(f"{day} is in the future", param_hint="DAY")

    fields = {
        "title": title,
        "cover_url": cover,
        "thumb_cover_url": thumb,
        "markdown_text": markdown_text,
    }
    fields = {k: v for k, v in fields.items() if v is not None}
    if photos:
        fields["photos"] = list(photos)
    if not fields:
        raise click.UsageError("Nothing to write: pass at least one of --title/--cover/--thumb/--text/--photo.")

    config = load_config(ctx)
    record = asyncio.run(_put(config, day, fields))
    click.echo(f"Saved {record.id}" + (f": {record.title}" if record.title else ""))


async def _put(config, day: str, fields: dict):
    store = await open_store(config)
    return await store.upsert(day, fields)


@click.command()
@click.argument("day", callback=day_argument)
@click.pass_context
def delete(ctx: click.Context, day: str) -> None:
    """Remove the entry for DAY."""
    config = load_config(ctx)
    existed = asyncio.run(_delete(config, day))
    click.echo(f"Deleted {day}" if existed else f"No entry for {day}")


async def _delete(config, day: str) -> bool:
    store = await open_store(config)
    return await store.delete(day)
