"""Remark CLI — inspect and edit the day journal from a terminal."""

import click

from remark import __version__


@click.group()
@click.version_option(version=__version__, package_name="remark-journal")
@click.option(
    "--config",
    "config_file",
    type=click.Path(dir_okay=False),
    default=None,
    help="Config file (YAML or JSON). Defaults to ~/.remark/config.yaml.",
)
@click.pass_context
def main(ctx: click.Context, config_file: str | None) -> None:
    """Remark — a personal day journal."""
    ctx.ensure_object(dict)
    ctx.obj["config_file"] = config_file


# Register subcommands
from .edit_cmd import delete, put  # noqa: E402
from .view_cmd import calendar, feed, show  # noqa: E402

main.add_command(feed)
main.add_command(calendar)
main.add_command(show)
main.add_command(put)
main.add_command(delete)
