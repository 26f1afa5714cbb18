"""CLI for the vitalscore daily health scoring engine."""

import json
import logging
from datetime import date

import click


@click.group()
def main() -> None:
    """vitalscore: strain, recovery, stress and sleep scores from biometric exports."""


@main.command()
@click.argument("export", type=click.Path(exists=True, dir_okay=False))
@click.option("--date", "-d", "day", default=None, help="Day to score (YYYY-MM-DD). Defaults to the latest day in the export.")
@click.option("--config", "-c", default=None, type=click.Path(exists=True, dir_okay=False), help="JSON config with 'defaults' and 'profile'.")
@click.option("--output", "-o", default=None, help="Write the summary JSON to this file.")
@click.option("--verbose", "-v", is_flag=True, help="Log scoring details.")
def score(export: str, day: str | None, config: str | None, output: str | None, verbose: bool) -> None:
    """Score one day from a JSON sample export."""
    from vitalscore.analytics.pipeline import score_day
    from vitalscore.config import load_config, setup
    from vitalscore.samples import InMemorySampleProvider

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        provider = InMemorySampleProvider.from_json(export)
    except (ValueError, TypeError) as e:
        raise click.ClickException(f"Could not read export {export}: {e}") from e

    try:
        context = load_config(config) if config else setup()
    except (ValueError, TypeError) as e:
        raise click.ClickException(f"Could not read config {config}: {e}") from e

    latest = provider.latest_timestamp
    tz = latest.tzinfo if latest is not None else None
    if day is not None:
        try:
            target = date.fromisoformat(day)
        except ValueError as e:
            raise click.BadParameter(f"expected YYYY-MM-DD, got {day!r}", param_hint="--date") from e
    elif latest is not None:
        target = latest.date()
    else:
        target = date.today()

    summary = score_day(provider, target, context, tz=tz)
    click.echo(repr(summary))
    click.echo(summary.to_json())

    if output:
        with open(output, "w") as f:
            f.write(summary.to_json())
        click.echo(f"Wrote {output}")


@main.command()
def defaults() -> None:
    """Print the default configuration as JSON."""
    from vitalscore.config import SystemDefaults, UserProfile

    click.echo(json.dumps(
        {"defaults": SystemDefaults().to_dict(), "profile": UserProfile().to_dict()},
        indent=2,
    ))


if __name__ == "__main__":
    main()
