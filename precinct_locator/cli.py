"""Command-line interface for Precinct Locator management"""

import calendar
import sys

import click
import structlog

from precinct_locator.config import settings
from precinct_locator.database import Database
from precinct_locator.exceptions import DatasetUpgradeError, PrecinctLocatorError
from precinct_locator.ingestion.startup import DatasetBootstrapper
from precinct_locator.observability.structured_logging import configure_logging
from precinct_locator.schemas.geometry import LatLng
from precinct_locator.services.dataset_versions import DatasetKey, DatasetVersionManager
from precinct_locator.services.schedule_engine import ScheduleService, compute_month
from precinct_locator.services.zone_catalog import ZoneCatalog
from precinct_locator.services.zone_resolver import ZoneResolver

logger = structlog.get_logger()


@click.group()
@click.option('--database-url', envvar='DATABASE_URL', default=None, help='Overrides DATABASE_URL')
@click.pass_context
def cli(ctx, database_url):
    """Precinct Locator Management CLI"""
    configure_logging(settings)
    ctx.ensure_object(dict)
    ctx.obj['database'] = Database(database_url or settings.database_url, echo=settings.database_echo)
    ctx.call_on_close(ctx.obj['database'].close)


@cli.command()
@click.option('--force', is_flag=True, help='Reseed every dataset even if current')
@click.option('--data-dir', default=None, help='Directory holding seed JSON files')
@click.pass_context
def seed(ctx, force: bool, data_dir):
    """Seed or upgrade every dataset"""
    database = ctx.obj['database'].open()

    try:
        report = DatasetBootstrapper(database, settings, data_dir=data_dir).run(force=force)
    except DatasetUpgradeError as e:
        click.echo(f"❌ Seeding failed: {e}", err=True)
        sys.exit(1)

    for key in report.upgraded:
        click.echo(f"✅ {key}: reseeded")
    for key in report.current:
        click.echo(f"   {key}: current")
    click.echo(f"Initial load complete: {report.initial_load_complete}")


@cli.command()
@click.pass_context
def versions(ctx):
    """Show recorded dataset versions"""
    database = ctx.obj['database'].open()
    targets = settings.get_target_versions()

    with database.session_scope() as db:
        manager = DatasetVersionManager(db, settings.version_comparison)
        recorded = {row.dataset_key: row for row in manager.list_versions()}

        click.echo(f"Comparison rule: {manager.comparison.value}")
        click.echo(f"{'Dataset':<12} {'Version':<10} {'Target':<10} {'Synced':<20} Upgrade")
        click.echo("-" * 64)
        for key in DatasetKey:
            row = recorded.get(key.value)
            current = row.version if row else None
            synced = row.last_synced_at.strftime('%Y-%m-%d %H:%M:%S') if row else '-'
            upgrade = manager.needs_upgrade(key, current, targets[key.value])
            click.echo(
                f"{key.value:<12} {current or '-':<10} {targets[key.value]:<10} {synced:<20} "
                f"{'yes' if upgrade else 'no'}"
            )


@cli.command()
@click.argument('lat', type=click.FloatRange(-90.0, 90.0))
@click.argument('lng', type=click.FloatRange(-180.0, 180.0))
@click.pass_context
def resolve(ctx, lat: float, lng: float):
    """Resolve LAT LNG to a precinct and sector"""
    database = ctx.obj['database'].open()

    with database.session_scope() as db:
        snapshot = ZoneCatalog(db).snapshot()
        resolution = ZoneResolver().resolve(
            LatLng(latitude=lat, longitude=lng), snapshot.zones, snapshot.sub_zones
        )

    if not resolution.resolved:
        click.echo(f"No precinct found for ({lat}, {lng})")
        sys.exit(1)

    zone = resolution.zone
    click.echo(f"Precinct: {zone.zone_id} ({zone.attributes.get('name')})")
    click.echo(f"Match: {resolution.match_level}")
    if resolution.squared_distance is not None:
        click.echo(f"Centroid distance: {resolution.squared_distance:.6f} sq deg")
    if resolution.sub_zone is not None:
        derived = " (derived)" if resolution.sub_zone.derived else ""
        click.echo(f"Sector: {resolution.sub_zone.sub_zone_id}{derived}")
    for entry in snapshot.quarantined:
        click.echo(f"⚠️  {entry.kind} {entry.identifier} excluded: {entry.reason}")


@cli.command(name='calendar')
@click.argument('squad_id', type=int)
@click.argument('year', type=int)
@click.argument('month', type=click.IntRange(1, 12))
@click.pass_context
def calendar_command(ctx, squad_id: int, year: int, month: int):
    """Print SQUAD_ID's duty calendar for YEAR MONTH (O = off)"""
    database = ctx.obj['database'].open()

    try:
        with database.session_scope() as db:
            schedule = ScheduleService(db).get_schedule(squad_id)
    except PrecinctLocatorError as e:
        click.echo(f"❌ {e}", err=True)
        sys.exit(1)

    if schedule is None:
        click.echo(f"❌ Squad {squad_id} has no schedule", err=True)
        sys.exit(1)

    days = compute_month(year, month, schedule)

    click.echo(f"{calendar.month_name[month]} {year} - squad {squad_id}")
    click.echo(" Su  Mo  Tu  We  Th  Fr  Sa")
    for week in calendar.Calendar(firstweekday=6).monthdayscalendar(year, month):
        cells = []
        for day in week:
            if day == 0:
                cells.append("    ")
            else:
                cells.append(f"{day:>3}{'O' if days[day] else ' '}")
        click.echo("".join(cells).rstrip())

    off_days = [day for day, off in days.items() if off]
    click.echo(f"Off days: {', '.join(str(day) for day in off_days)}")


if __name__ == '__main__':
    cli()
