from __future__ import annotations

import logging
from typing import Optional

import click

from . import catalog, tracker
from .config import get_settings
from .db import (
    DB_FILE,
    clear_miles_override,
    load_settings,
    migrate,
    save_settings,
    set_miles_override,
)
from .models import FlightRoute, Provenance, RouteEvaluation
from .quote_resolver import describe
from .report import value_table

logger = logging.getLogger(__name__)


def setup_logging() -> None:
    cfg = get_settings()
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if cfg.log_file:
        handlers.insert(0, logging.FileHandler(cfg.log_file))
    logging.basicConfig(
        level=getattr(logging, cfg.log_level, logging.INFO),
        handlers=handlers,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def _echo_evaluation(ev: RouteEvaluation) -> None:
    route, price = ev.route, ev.price
    click.echo(f"{route.label or route.id}: {route.origin} ➔ {route.destination} {route.date}")
    if price.price is None:
        click.echo(
            f"  Price unavailable – {price.error}. "
            f"Check {catalog.google_flights_url(route)}"
        )
    else:
        click.echo(f"  Cash {price.price:,.0f} {price.currency} ({price.source})")
        if price.warning:
            click.echo(f"  Warning: {price.warning}")

    for val in ev.values:
        line = (
            f"  {val.tier.indicator} {val.program.name}: {describe(val.quote)} "
            f"= {val.cpp:.2f}¢/mi [{val.tier.label}]"
        )
        if val.quote.fees:
            line += f" net {val.net_cpp:.2f}¢/mi"
        if val.bookings is not None:
            line += f" · {val.bookings} one-way(s) from balance"
        click.echo(line)
        if val.quote.provenance is not Provenance.MANUAL:
            url = catalog.award_search_url(
                val.program, route.origin, route.destination, route.date
            )
            click.echo(f"      Check live: {url}")

    best = ev.best
    if best:
        click.echo(
            f"  Best value: {best.program.name} at {best.cpp:.2f}¢/mi – {best.program.book_url}"
        )


@click.group()
@click.option("--db", "db_path", default=DB_FILE, show_default=True, help="SQLite file")
@click.pass_context
def cli(ctx: click.Context, db_path: str) -> None:
    """Compare cash fares with award redemptions."""
    ctx.ensure_object(dict)
    ctx.obj["db_path"] = db_path
    migrate(db_path=db_path)


@cli.command()
@click.argument("origin")
@click.argument("destination")
@click.argument("date")
def price(origin: str, destination: str, date: str) -> None:
    """Lowest one-way economy cash fare."""
    result = tracker.price_fetcher.lowest_fare(origin, destination, date)
    if result.price is None:
        url = catalog.google_flights_url(
            FlightRoute("", "", origin.upper(), "", destination.upper(), "", date)
        )
        click.echo(f"Price unavailable – {result.error}. Check {url}")
        return
    click.echo(f"{result.price:,.2f} {result.currency} ({result.source}, {result.fetched_at:%Y-%m-%d %H:%M} UTC)")
    if result.warning:
        click.echo(f"Warning: {result.warning}")


@cli.command()
@click.argument("origin")
@click.argument("destination")
@click.argument("program")
@click.option("--date", default="", help="Travel date (YYYY-MM-DD)")
@click.option("--origin-city", default=None)
@click.option("--dest-city", default=None)
def estimate(
    origin: str,
    destination: str,
    program: str,
    date: str,
    origin_city: Optional[str],
    dest_city: Optional[str],
) -> None:
    """Community mileage estimate from web search."""
    result = tracker.search_fetcher.estimate_award_miles(
        origin, destination, program, date, origin_city, dest_city
    )
    if result.miles is None:
        click.echo("No estimate found")
    else:
        click.echo(f"~{result.miles:,} miles (estimated, {result.confidence} confidence)")


@cli.command()
@click.argument("origin")
@click.argument("destination")
@click.argument("date")
def availability(origin: str, destination: str, date: str) -> None:
    """Live economy award availability."""
    result = tracker.seats_fetcher.availability(origin, destination, date)
    if result.status != "ok":
        click.echo(f"{result.status}: {result.message}")
        return
    if not result.results:
        click.echo("No economy award space found")
    for entry in result.results:
        click.echo(
            f"{entry.program} | {entry.miles:,} miles | {entry.seats_remaining} seats | "
            f"{'Direct' if entry.stops == 0 else 'Connecting'} | {entry.carriers}"
        )


@cli.command()
@click.option("--csv", "as_csv", is_flag=True, help="Write the value table to CSV")
@click.pass_context
def compare(ctx: click.Context, as_csv: bool) -> None:
    """Evaluate every saved route against every saved program."""
    db_path = ctx.obj["db_path"]
    settings = load_settings(db_path=db_path)
    evaluations = tracker.evaluate_all(settings, db_path=db_path)
    for ev in evaluations:
        _echo_evaluation(ev)
    if as_csv:
        click.echo(value_table(evaluations, output="csv"))


@cli.command()
@click.pass_context
def routes(ctx: click.Context) -> None:
    """List saved routes."""
    for r in load_settings(db_path=ctx.obj["db_path"]).routes:
        click.echo(f"{r.id}: {r.origin} ➔ {r.destination} {r.date} {r.label}")


@cli.command()
@click.pass_context
def programs(ctx: click.Context) -> None:
    """List saved reward programs."""
    for p in load_settings(db_path=ctx.obj["db_path"]).programs:
        balance = f" balance {p.balance:,}" if p.balance is not None else ""
        click.echo(f"{p.id}: {p.name} {p.miles:,} mi @ {p.threshold}¢{balance}")


@cli.command("add-route")
@click.argument("origin")
@click.argument("destination")
@click.argument("date")
@click.option("--id", "route_id", default="")
@click.option("--label", default="")
@click.option("--origin-city", default="")
@click.option("--dest-city", default="")
@click.pass_context
def add_route(
    ctx: click.Context,
    origin: str,
    destination: str,
    date: str,
    route_id: str,
    label: str,
    origin_city: str,
    dest_city: str,
) -> None:
    """Save a new route."""
    db_path = ctx.obj["db_path"]
    route = FlightRoute(
        id=route_id,
        label=label,
        origin=origin,
        origin_city=origin_city or origin.upper(),
        destination=destination,
        dest_city=dest_city or destination.upper(),
        date=date,
    )
    settings = catalog.add_route(load_settings(db_path=db_path), route)
    save_settings(settings, db_path=db_path)
    click.echo(f"Added {settings.routes[-1].id}")


@cli.command("remove-route")
@click.argument("route_id")
@click.pass_context
def remove_route(ctx: click.Context, route_id: str) -> None:
    """Delete a saved route."""
    db_path = ctx.obj["db_path"]
    try:
        settings = catalog.remove_route(load_settings(db_path=db_path), route_id)
    except KeyError as exc:
        raise click.BadParameter(str(exc), param_hint="ROUTE_ID") from exc
    save_settings(settings, db_path=db_path)
    click.echo(f"Removed {route_id}")


@cli.command("add-preset")
@click.argument("name", type=click.Choice([p["name"] for p in catalog.PRESETS]))
@click.pass_context
def add_preset(ctx: click.Context, name: str) -> None:
    """Add a reward program from the preset list."""
    db_path = ctx.obj["db_path"]
    before = load_settings(db_path=db_path)
    settings = catalog.add_preset(before, name)
    if settings is before:
        click.echo(f"{name} is already saved")
        return
    save_settings(settings, db_path=db_path)
    click.echo(f"Added {settings.programs[-1].id}")


@cli.group()
def override() -> None:
    """Manual award quotes taken from the airline site."""


@override.command("set")
@click.argument("route_id")
@click.argument("program_id")
@click.argument("miles", type=click.IntRange(min=1))
@click.option("--fees", type=click.FloatRange(min=0), default=0.0, help="Cash co-pay")
@click.pass_context
def override_set(
    ctx: click.Context, route_id: str, program_id: str, miles: int, fees: float
) -> None:
    set_miles_override(route_id, program_id, miles, fees, db_path=ctx.obj["db_path"])
    click.echo(f"Saved {miles:,} miles + {fees:,.2f} for {route_id}/{program_id}")


@override.command("clear")
@click.argument("route_id")
@click.argument("program_id")
@click.pass_context
def override_clear(ctx: click.Context, route_id: str, program_id: str) -> None:
    clear_miles_override(route_id, program_id, db_path=ctx.obj["db_path"])
    click.echo(f"Cleared {route_id}/{program_id}")


@cli.command()
@click.option("--host", default="127.0.0.1", show_default=True)
@click.option("--port", default=8000, show_default=True, type=int)
def serve(host: str, port: int) -> None:
    """Run the HTTP API."""
    import uvicorn

    uvicorn.run("award_sniper.api:app", host=host, port=port)


def main() -> None:
    setup_logging()
    cli(obj={})


if __name__ == "__main__":
    main()
