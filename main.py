"""Entry point for one-shot measurements and the latency monitor."""

from __future__ import annotations

import argparse
import asyncio
import json
import time
from typing import List, Optional

from netradar import ApplicationContext, bootstrap
from netradar.measurements.ratings import SizeProfile


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Network performance measurement and scoring")
    parser.add_argument("--config", help="Path to config.yaml", default="config.yaml")
    commands = parser.add_subparsers(dest="command", required=True)

    speed = commands.add_parser("speed", help="Run a full speed test")
    speed.add_argument("-s", "--size", choices=[p.value for p in SizeProfile], default=None)

    ping = commands.add_parser("ping", help="Measure latency and jitter")
    ping.add_argument("--host", default="8.8.8.8", help="Target host")
    ping.add_argument("-c", "--count", type=int, default=10, help="Number of echo probes")

    health = commands.add_parser("health", help="Score overall WiFi health")
    health.add_argument("--signal", type=float, default=-99.0, help="Signal strength in dBm")
    health.add_argument("--channel", type=int, default=None, help="Current channel")
    health.add_argument(
        "--neighbors", type=int, nargs="*", default=[], help="Channels of neighbouring networks"
    )
    health.add_argument("--security", nargs="*", default=None, help="Security tags, e.g. WPA2 Personal")

    commands.add_parser("qos", help="Classify quality of service")
    commands.add_parser("connectivity", help="Check internet, DNS and gateway reachability")
    commands.add_parser("diagnostics", help="Reachability, timed DNS lookups and a short performance pass")

    monitor = commands.add_parser("monitor", help="Sample latency in the background")
    monitor.add_argument("--duration", type=int, default=300, help="Seconds to run before exiting")
    return parser.parse_args(argv)


async def _run_command(context: ApplicationContext, args: argparse.Namespace):
    manager = context.measurements
    if args.command == "speed":
        return await manager.run_speed_test(args.size)
    if args.command == "ping":
        return await manager.measure_latency(args.host, args.count)
    if args.command == "health":
        return await manager.assess_health(args.signal, args.neighbors, args.channel, args.security)
    if args.command == "qos":
        return await manager.assess_qos()
    if args.command == "connectivity":
        return await manager.check_connectivity()
    if args.command == "diagnostics":
        return await manager.run_diagnostics()
    raise ValueError(f"Unknown command {args.command}")


def _run_monitor(context: ApplicationContext, duration: int) -> dict:
    context.monitor.start()
    try:
        time.sleep(duration)
    finally:
        context.shutdown()
    return {host: context.monitor.snapshot(host) for host in context.monitor.hosts}


def main(argv: Optional[List[str]] = None) -> None:
    args = parse_args(argv)
    context = bootstrap(args.config)

    if args.command == "monitor":
        payload = _run_monitor(context, args.duration)
    else:
        payload = asyncio.run(_run_command(context, args)).to_dict()
    print(json.dumps(payload, indent=2))


if __name__ == "__main__":
    main()
