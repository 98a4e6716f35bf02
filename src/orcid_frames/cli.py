"""A command line interface for orcid-frames."""

import sys

import click
import pandas as pd

from orcid_frames.api import SECTIONS, fetch_record, get_base_url
from orcid_frames.client import ping as ping_api
from orcid_frames.errors import InvalidIdentifierError, OrcidError
from orcid_frames.search import search as search_orcid

__all__ = ["main"]

FORMATS = ["table", "tsv", "csv", "json"]

token_option = click.option("--token", help="A bearer token. Defaults to $ORCID_TOKEN")
base_url_option = click.option("--base-url", help="The API's URL. Defaults to $ORCID_API_URL")
format_option = click.option(
    "--format", "output_format", type=click.Choice(FORMATS), default="table", show_default=True
)


@click.group()
def main() -> None:
    """Get flat tables about researchers from the ORCID public API."""


def _echo_frame(frame: pd.DataFrame, output_format: str) -> None:
    if output_format == "tsv":
        frame.to_csv(sys.stdout, sep="\t", index=False)
    elif output_format == "csv":
        frame.to_csv(sys.stdout, index=False)
    elif output_format == "json":
        click.echo(frame.to_json(orient="records", indent=2))
    else:
        from tabulate import tabulate

        click.echo(tabulate(frame, headers="keys", tablefmt="github", showindex=False))


@main.command()
@click.argument("orcid")
@click.option(
    "--section",
    "sections",
    multiple=True,
    type=click.Choice(list(SECTIONS)),
    help="Can be given several times. Defaults to employments, educations, works, "
    "funding, and peer reviews",
)
@token_option
@base_url_option
@format_option
def fetch(
    orcid: str,
    sections: tuple[str, ...],
    token: str | None,
    base_url: str | None,
    output_format: str,
) -> None:
    """Fetch sections of an ORCID record."""
    try:
        record = fetch_record(orcid, sections or None, token=token, base_url=base_url)
    except InvalidIdentifierError as e:
        raise click.BadParameter(str(e), param_hint="ORCID") from e
    for key, frame in record.items():
        if output_format == "table":
            click.secho(f"\n{key} ({len(frame.index)} rows)\n", bold=True)
        _echo_frame(frame, output_format)


@main.command()
@click.argument("query")
@click.option("--rows", type=click.IntRange(1, 1000), default=10, show_default=True)
@click.option("--start", type=click.IntRange(min=0), default=0, show_default=True)
@token_option
@base_url_option
@format_option
def search(
    query: str,
    rows: int,
    start: int,
    token: str | None,
    base_url: str | None,
    output_format: str,
) -> None:
    """Search the ORCID registry."""
    try:
        results = search_orcid(query, rows=rows, start=start, token=token, base_url=base_url)
    except OrcidError as e:
        raise click.ClickException(str(e)) from e
    frame = results.frame.assign(other_names=results.frame["other_names"].map("; ".join))
    _echo_frame(frame, output_format)
    if output_format == "table":
        click.echo(f"\nShowing {len(frame.index)} of {results.total_matches:,} matches")


@main.command()
@base_url_option
def ping(base_url: str | None) -> None:
    """Check the status of the ORCID API."""
    try:
        status = ping_api(base_url=get_base_url(base_url))
    except OrcidError as e:
        raise click.ClickException(str(e)) from e
    click.echo(status)


if __name__ == "__main__":
    main()
