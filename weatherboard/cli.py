"""CLI entry point for the weather dashboard."""

import argparse
import asyncio
import logging
import signal

from weatherboard.config.loader import get_config_value, load_config
from weatherboard.controller import EVENT_SNAPSHOT, DashboardController, build_controller

DEFAULT_CONFIG = "weatherboard.yaml"


def _positive_int(value: str) -> int:
    n = int(value)
    if n < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1, got {n}")
    return n


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="weatherboard",
        description="Live weather dashboard for your cities",
    )
    parser.add_argument(
        "--config", default=DEFAULT_CONFIG, help="Config YAML path"
    )
    parser.add_argument("--db", default=None, help="SQLite DB path (overrides config)")

    sub = parser.add_subparsers(dest="command")

    # current / forecast / hourly
    current_p = sub.add_parser("current", help="Show current conditions")
    current_p.add_argument("cities", nargs="*", help="Cities (default: configured set)")
    forecast_p = sub.add_parser("forecast", help="Show the 7-day forecast")
    forecast_p.add_argument("city")
    hourly_p = sub.add_parser("hourly", help="Show the next 24 hours")
    hourly_p.add_argument("city")

    # preferences
    fav_p = sub.add_parser("favorite", help="Toggle a favorite city")
    fav_p.add_argument("city")
    sub.add_parser("unit", help="Toggle celsius/fahrenheit")
    sub.add_parser("prefs", help="Show stored preferences")

    # long-running
    watch_p = sub.add_parser("watch", help="Refresh periodically and print updates")
    watch_p.add_argument(
        "--interval", type=_positive_int, default=None, help="Refresh interval in seconds"
    )
    serve_p = sub.add_parser("serve", help="Serve the JSON API")
    serve_p.add_argument("--host", default="127.0.0.1")
    serve_p.add_argument("--port", type=int, default=8777)

    config_p = sub.add_parser("config", help="Config operations")
    config_sub = config_p.add_subparsers(dest="config_command")
    config_sub.add_parser("show", help="Display current config")
    get_p = config_sub.add_parser("get", help="Get a config value")
    get_p.add_argument("key", help="Dotted key, e.g. cache.freshness_window_ms")

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 1

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    config = load_config(args.config)
    if args.db:
        config = config.model_copy(
            update={"storage": config.storage.model_copy(update={"db_path": args.db})}
        )

    if args.command == "config":
        return _cmd_config(config, args)

    controller = build_controller(config)
    if args.command == "current":
        return asyncio.run(_cmd_current(controller, args))
    elif args.command == "forecast":
        return asyncio.run(_cmd_forecast(controller, args))
    elif args.command == "hourly":
        return asyncio.run(_cmd_hourly(controller, args))
    elif args.command == "favorite":
        return _then_stop(controller, _cmd_favorite, args)
    elif args.command == "unit":
        return _then_stop(controller, _cmd_unit)
    elif args.command == "prefs":
        return _then_stop(controller, _cmd_prefs)
    elif args.command == "watch":
        return asyncio.run(_cmd_watch(controller, args))
    elif args.command == "serve":
        return _cmd_serve(controller, args)
    else:
        parser.print_help()
        return 1


async def _cmd_current(controller: DashboardController, args) -> int:
    cities = args.cities or controller.config.default_cities
    try:
        for city in cities:
            await controller.add_city(city)

        _print_dashboard(controller)
        missing = [c for c in controller.cities() if controller.get_snapshot(c) is None]
        for city in missing:
            entry = controller.get_entry(city)
            print(f"  {city}: unavailable ({entry.error if entry else 'not fetched'})")
        return 0 if not missing else 1
    finally:
        await controller.stop()


async def _cmd_forecast(controller: DashboardController, args) -> int:
    try:
        days = await controller.get_daily_forecast(args.city)
        if not days:
            print(f"No forecast available for {args.city}")
            return 1
        unit = _unit_symbol(controller)
        for d in days:
            print(
                f"  {d.date.isoformat()}  {controller.convert(d.temperature)}{unit}  "
                f"{d.condition}  rain {d.precipitation_percent}%"
            )
        return 0
    finally:
        await controller.stop()


async def _cmd_hourly(controller: DashboardController, args) -> int:
    try:
        points = await controller.get_hourly_series(args.city)
        if not points:
            print(f"No hourly data available for {args.city}")
            return 1
        unit = _unit_symbol(controller)
        for p in points:
            print(
                f"  {p.time_label}  {controller.convert(p.temperature)}{unit}  "
                f"wind {p.wind_speed_kph} km/h"
            )
        return 0
    finally:
        await controller.stop()


def _then_stop(controller: DashboardController, cmd, *args) -> int:
    try:
        return cmd(controller, *args)
    finally:
        asyncio.run(controller.stop())


def _cmd_favorite(controller: DashboardController, args) -> int:
    favorites = controller.toggle_favorite(args.city)
    state = "added to" if args.city in favorites else "removed from"
    print(f"{args.city} {state} favorites")
    return 0


def _cmd_unit(controller: DashboardController) -> int:
    print(f"Display unit: {controller.toggle_unit().value}")
    return 0


def _cmd_prefs(controller: DashboardController) -> int:
    prefs = controller.load_preferences()
    print(f"Unit: {prefs.unit.value}")
    print(f"Favorites: {', '.join(sorted(prefs.favorites)) or '(none)'}")
    return 0


async def _cmd_watch(controller: DashboardController, args) -> int:
    if args.interval is not None:
        controller.config = controller.config.model_copy(
            update={
                "scheduler": controller.config.scheduler.model_copy(
                    update={"interval_ms": args.interval * 1000}
                )
            }
        )

    stop = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(sig, stop.set)

    def _on_change(event: str, city: str | None) -> None:
        if event == EVENT_SNAPSHOT and city is not None:
            snapshot = controller.get_snapshot(city)
            if snapshot is None:
                print(f"  {city}: unavailable")
            else:
                print(
                    f"  {city}: {controller.convert(snapshot.temperature)}"
                    f"{_unit_symbol(controller)} {snapshot.condition}"
                )

    controller.subscribe(_on_change)
    await controller.start()
    print(
        f"Watching {len(controller.cities())} cities, "
        f"every {controller.config.scheduler.interval_ms // 1000}s (Ctrl-C to stop)"
    )
    try:
        await stop.wait()
    finally:
        await controller.stop()
    return 0


def _cmd_serve(controller: DashboardController, args) -> int:
    import uvicorn

    from weatherboard.dashboard import create_app

    uvicorn.run(create_app(controller), host=args.host, port=args.port)
    return 0


def _cmd_config(config, args) -> int:
    if args.config_command == "show":
        print(config.model_dump_json(indent=2))
        return 0
    elif args.config_command == "get":
        try:
            print(get_config_value(config, args.key))
            return 0
        except (KeyError, IndexError, ValueError) as e:
            print(f"Error: {e}")
            return 1
    else:
        print("Use: config show | config get key")
        return 1


def _print_dashboard(controller: DashboardController) -> None:
    unit = _unit_symbol(controller)
    for view in controller.dashboard():
        s = view.snapshot
        star = "*" if view.favorite else " "
        print(
            f"{star} {view.city}: {view.display_temperature}{unit} {s.condition}  "
            f"humidity {s.humidity}%  wind {s.wind_speed_kph} km/h  "
            f"pressure {s.pressure_hpa} hPa  visibility {s.visibility_km} km  "
            f"dew point {controller.convert(s.dew_point_c)}{unit}"
        )


def _unit_symbol(controller: DashboardController) -> str:
    return "°F" if controller.load_preferences().unit.value == "fahrenheit" else "°C"
