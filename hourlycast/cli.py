"""CLI entry point for the hourly forecast service."""

import argparse
import asyncio
import json
import logging

import uvicorn

from hourlycast.config.loader import (
    get_config_value,
    load_config,
    resolve_config_path,
    save_config,
    set_config_value,
)
from hourlycast.config.schema import AppConfig
from hourlycast.dashboard import create_app
from hourlycast.display.demo import demo_forecast_set
from hourlycast.display.eink import DashboardCapture
from hourlycast.models.forecast import CacheEntry
from hourlycast.reporting.health_checker import check_upstream
from hourlycast.service import ForecastService, local_base_url


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="hourlycast",
        description="Hourly weather forecast scraper and dashboard",
    )
    parser.add_argument(
        "--config", default=None, help="Config YAML path (default: $HOURLYCAST_CONFIG)"
    )
    parser.add_argument(
        "--log-level", default="INFO", choices=["DEBUG", "INFO", "WARNING", "ERROR"]
    )

    sub = parser.add_subparsers(dest="command")

    # serve
    serve_p = sub.add_parser("serve", help="Run the API + dashboard server")
    serve_p.add_argument("--host", default=None)
    serve_p.add_argument("--port", type=int, default=None)

    # scrape
    scrape_p = sub.add_parser("scrape", help="Run one refresh and print the forecast")
    scrape_p.add_argument("--json", action="store_true", help="Print the API payload")

    # screenshot
    shot_p = sub.add_parser("screenshot", help="Capture the dashboard for the e-ink panel")
    shot_p.add_argument("--url", default=None, help="Dashboard URL (default: local server)")

    # preview
    preview_p = sub.add_parser("preview", help="Serve deterministic demo data")
    preview_p.add_argument("--port", type=int, default=None)

    # health
    sub.add_parser("health", help="Check upstream reachability")

    # config show / config set
    config_p = sub.add_parser("config", help="Config operations")
    config_sub = config_p.add_subparsers(dest="config_command")
    config_sub.add_parser("show", help="Display current config")
    set_p = config_sub.add_parser("set", help="Set a config value")
    set_p.add_argument("keyvalue", help="key=value to set")

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 1

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    config_path = resolve_config_path(args.config)
    config = load_config(config_path)

    if args.command == "serve":
        return _cmd_serve(config, args)
    elif args.command == "scrape":
        return _cmd_scrape(config, args)
    elif args.command == "screenshot":
        return _cmd_screenshot(config, args)
    elif args.command == "preview":
        return _cmd_preview(config, args)
    elif args.command == "health":
        return _cmd_health(config)
    elif args.command == "config":
        return _cmd_config(config, config_path, args)
    else:
        parser.print_help()
        return 1


def _cmd_serve(config: AppConfig, args) -> int:
    server = config.server.model_copy(
        update={
            k: v for k, v in (("host", args.host), ("port", args.port)) if v is not None
        }
    )
    config = config.model_copy(update={"server": server})
    uvicorn.run(create_app(config), host=server.host, port=server.port)
    return 0


def _cmd_scrape(config: AppConfig, args) -> int:
    config = config.model_copy(
        update={"display": config.display.model_copy(update={"enabled": False})}
    )
    service = ForecastService(config)
    try:
        entry = asyncio.run(service.run_once())
    except Exception as e:
        print(f"Error: {e}")
        return 1

    if args.json:
        print(json.dumps(entry.to_payload(entry.fetched_at), indent=2))
    else:
        _print_forecast(entry)
    return 0


def _print_forecast(entry: CacheEntry) -> None:
    forecast = entry.forecast
    print(f"{forecast.location} | {len(forecast.hours)} hours | fetched {entry.fetched_at:%Y-%m-%d %H:%M}Z")
    for h in forecast.hours:
        print(
            f"  {h.datetime:%Y-%m-%d %H:%M}Z  {h.temperature:>3}°{h.temperature_unit}  "
            f"{h.precipitation_probability:>3}%  {h.precipitation_amount:5.2f}mm  {h.condition_phrase}"
        )


def _cmd_screenshot(config: AppConfig, args) -> int:
    service = ForecastService(config)
    capture = service.capture or DashboardCapture(
        service.session, config.display, local_base_url(config)
    )

    async def _run():
        try:
            return await capture.capture(args.url)
        finally:
            await service.session.shutdown()

    try:
        path = asyncio.run(_run())
    except Exception as e:
        print(f"Error: {e}")
        return 1
    print(f"Saved e-ink preview screenshot to: {path}")
    return 0


def _cmd_preview(config: AppConfig, args) -> int:
    port = args.port if args.port is not None else config.server.port
    config = config.model_copy(
        update={
            "server": config.server.model_copy(update={"port": port}),
            "cache": config.cache.model_copy(update={"scheduled_refresh": False}),
            "display": config.display.model_copy(update={"enabled": False}),
        }
    )
    service = ForecastService(config)
    service.cache.prime(demo_forecast_set())
    uvicorn.run(create_app(config, service), host=config.server.host, port=port)
    return 0


def _cmd_health(config: AppConfig) -> int:
    statuses = check_upstream(config.scraper)
    for status in statuses:
        if status.reachable:
            print(f"OK   {status.url} ({status.status_code})")
        else:
            detail = status.error or f"HTTP {status.status_code}"
            print(f"FAIL {status.url} ({detail})")
    return 0 if all(s.reachable for s in statuses) else 1


def _cmd_config(config: AppConfig, config_path, args) -> int:
    if args.config_command == "show":
        print(config.model_dump_json(indent=2))
        return 0
    elif args.config_command == "set":
        kv = args.keyvalue
        if "=" not in kv:
            print("Error: use key=value format")
            return 1
        key, value = kv.split("=", 1)
        try:
            new_config = set_config_value(config, key.strip(), value.strip())
            save_config(new_config, config_path)
            print(f"Set {key} = {get_config_value(new_config, key.strip())}")
            return 0
        except Exception as e:
            print(f"Error: {e}")
            return 1
    else:
        print("Use: config show | config set key=value")
        return 1
