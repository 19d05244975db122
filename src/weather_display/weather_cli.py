"""Terminal view: fetch a reading, render it, and manage saved locations."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from collections.abc import Sequence

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .config import Settings, load_settings
from .exceptions import (
    ConfigError,
    FavoritesError,
    WeatherProviderError,
    WeatherValidationError,
)
from .favorites import FavoritesList, JsonFileFavoritesRepository
from .log_setup import setup_logger
from .service import WeatherService
from .weather.factory import build_provider
from .weather.models import WeatherData

HOURLY_STEP = 3


def _positive_int(value: str) -> int:
    number = int(value)
    if number <= 0:
        raise argparse.ArgumentTypeError(f"expected a positive integer, got {value}")
    return number


def _positive_float(value: str) -> float:
    number = float(value)
    if not number > 0:
        raise argparse.ArgumentTypeError(f"expected a positive number, got {value}")
    return number


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    """Parse weather display CLI arguments."""
    parser = argparse.ArgumentParser(description="Show weather for a location.")
    sub = parser.add_subparsers(dest="command", required=True)

    show = sub.add_parser("show", help="Fetch and render weather for a location.")
    show.add_argument("query", help="Place name or 'lat,lon' pair.")
    show.add_argument("--save", action="store_true", help="Add the location to favorites.")
    show.add_argument(
        "--current",
        action="store_true",
        help="Treat the query as the device location and pin it first in favorites.",
    )

    favorites = sub.add_parser("favorites", help="Manage saved locations.")
    fav_sub = favorites.add_subparsers(dest="action", required=True)
    fav_sub.add_parser("list", help="List saved locations.")
    fav_add = fav_sub.add_parser("add", help="Save a location by name.")
    fav_add.add_argument("name")
    fav_remove = fav_sub.add_parser("remove", help="Remove a saved location by id.")
    fav_remove.add_argument("location_id")

    refresh = sub.add_parser("refresh", help="Re-fetch a location on an interval.")
    refresh.add_argument("query")
    refresh.add_argument(
        "--count", type=_positive_int, default=3, help="Number of refresh rounds to run."
    )
    refresh.add_argument(
        "--interval",
        type=_positive_float,
        default=None,
        help="Seconds between updates (defaults to AUTO_REFRESH_SECONDS).",
    )
    return parser.parse_args(argv)


def render_weather(console: Console, data: WeatherData) -> None:
    location = data.location
    current = data.current
    details = data.details
    place = ", ".join(part for part in [location.name, location.region, location.country] if part)
    console.print(f"[bold]{place}[/bold]  local time {location.localtime}")
    console.print(
        f"{current.temp_c:.0f}°C ({current.temp_f:.0f}°F)  {current.description}  "
        f"humidity={details.humidity:g}%  wind={details.wind_kph:g} km/h {current.wind_dir}  "
        f"rain={details.chance_of_rain:g}%"
    )

    if data.forecast and data.forecast[0].hour:
        first = data.forecast[0]
        hourly = Table(title=f"{first.label} hourly")
        hourly.add_column("Time")
        hourly.add_column("Temp")
        hourly.add_column("Condition", overflow="fold")
        hourly.add_column("Rain %")
        for entry in first.hour[::HOURLY_STEP]:
            hourly.add_row(
                entry.time[-5:],
                f"{entry.temp_c:.0f}°",
                entry.condition.text,
                f"{entry.chance_of_rain:g}",
            )
        console.print(hourly)

    daily = Table(title=f"{len(data.forecast)}-day forecast")
    daily.add_column("Day")
    daily.add_column("Date")
    daily.add_column("High")
    daily.add_column("Low")
    daily.add_column("Condition", overflow="fold")
    daily.add_column("Rain %")
    daily.add_column("Sunrise / Sunset")
    for day in data.forecast:
        daily.add_row(
            day.label,
            day.date.isoformat(),
            f"{day.high:.0f}°",
            f"{day.low:.0f}°",
            day.description,
            f"{day.day.daily_chance_of_rain:g}",
            f"{day.astro.sunrise} / {day.astro.sunset}",
        )
    console.print(daily)


def _render_favorites(console: Console, favorites: FavoritesList) -> None:
    locations = favorites.locations()
    if not locations:
        console.print("No saved locations.")
        return
    table = Table(title="Saved locations")
    table.add_column("Id")
    table.add_column("Name")
    table.add_column("Current")
    for loc in locations:
        table.add_row(loc.id, loc.name, "yes" if loc.is_current else "")
    console.print(table)


async def _show(
    args: argparse.Namespace,
    settings: Settings,
    console: Console,
    logger: logging.Logger,
) -> None:
    async with build_provider(settings, logger) as provider:
        service = WeatherService(
            provider, logger, refresh_interval_seconds=settings.auto_refresh_seconds
        )
        data = await service.get_weather(args.query)
    render_weather(console, data)

    if args.save or args.current:
        favorites = FavoritesList(JsonFileFavoritesRepository(settings.favorites_path), logger)
        if args.current:
            saved = favorites.set_current(data.location.name)
        else:
            saved = favorites.add(data.location.name)
        console.print(f"Saved {saved.name} (id={saved.id})")


async def _refresh(
    args: argparse.Namespace,
    settings: Settings,
    console: Console,
    logger: logging.Logger,
) -> int:
    stop = asyncio.Event()

    def _on_update(data: WeatherData) -> None:
        render_weather(console, data)

    async with build_provider(settings, logger) as provider:
        service = WeatherService(
            provider, logger, refresh_interval_seconds=settings.auto_refresh_seconds
        )
        return await service.auto_refresh(
            args.query,
            _on_update,
            stop=stop,
            interval_seconds=args.interval,
            max_rounds=args.count,
        )


def main(argv: Sequence[str] | None = None) -> int:
    """Run the weather display CLI."""
    args = parse_args(argv)
    console = Console()

    try:
        settings = load_settings()
    except ConfigError as exc:
        setup_logger().error("Configuration failure: %s", exc)
        return 2
    logger = setup_logger(level=settings.log_level)
    logger.debug("Settings loaded: %s", settings.safe_summary())

    try:
        if args.command == "favorites":
            favorites = FavoritesList(JsonFileFavoritesRepository(settings.favorites_path), logger)
            if args.action == "add":
                saved = favorites.add(args.name)
                console.print(f"Saved {saved.name} (id={saved.id})")
            elif args.action == "remove":
                if not favorites.remove(args.location_id):
                    console.print(f"No saved location with id {args.location_id}.")
                    return 1
            _render_favorites(console, favorites)
        elif args.command == "show":
            asyncio.run(_show(args, settings, console, logger))
        else:
            updates = asyncio.run(_refresh(args, settings, console, logger))
            if updates == 0:
                return 4
    except (WeatherProviderError, WeatherValidationError, FavoritesError) as exc:
        logger.error("Weather display failure: %s", exc)
        console.print(f"[red]Error:[/red] {escape(str(exc))}")
        return 4
    return 0


if __name__ == "__main__":
    sys.exit(main())
