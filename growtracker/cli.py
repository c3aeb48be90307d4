"""
Flask CLI commands.

Usage:
    flask growth-report                   # Phase of every plant as of now
    flask growth-report --on 2025-06-01   # Phase as of a given date
"""

from __future__ import annotations

import click
from flask.cli import with_appcontext


@click.command("growth-report")
@click.option("--on", "on_date", default=None,
              help="Evaluate phases as of this date (YYYY-MM-DD). Defaults to now.")
@with_appcontext
def growth_report_command(on_date: str | None) -> None:
    """Print each plant's growth phase and progress."""
    from growtracker.services import supabase_client
    from growtracker.services.growth_phase import InvalidInputError, calculate_growth_phase, parse_moment

    if on_date:
        try:
            parse_moment(on_date, "--on")
        except InvalidInputError as e:
            raise click.BadParameter(str(e), param_hint="--on")

    if not supabase_client.is_configured():
        click.echo("Error: Supabase not configured (SUPABASE_URL / SUPABASE_KEY missing).")
        raise SystemExit(1)

    plants = supabase_client.get_plants(use_cache=False)
    if not plants:
        click.echo("No plants found.")
        return

    for plant in plants:
        name = plant.get("name") or "(unnamed)"
        try:
            growth = calculate_growth_phase(plant.get("plant_date"), plant.get("flowering_weeks"), on_date)
        except InvalidInputError as e:
            click.echo(f"{name}: cannot compute phase ({e})")
            continue
        click.echo(
            f"{name}: {growth['phase_display']} - day {growth['days_in_phase']} "
            f"of {growth['total_phase_days']} ({round(growth['progress_percentage'])}%)"
        )

    click.echo(f"\n{len(plants)} plant(s).")
