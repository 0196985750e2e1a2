"""Command-line interface for the panesd daemon.

Provides the main entry point for running the video wall session manager,
plus two one-shot helpers for checking the browser side by hand.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import socket
import sys
from pathlib import Path

logger = logging.getLogger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        prog="panesd",
        description="Kiosk browser supervisor for the GrowingPanes video wall",
    )
    parser.add_argument(
        "-c", "--config",
        type=Path,
        default=None,
        help="Path to YAML configuration file (default: config/panesd.yaml)",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    subparsers.add_parser("run", help="Supervise the browser and serve the control surface")
    subparsers.add_parser("tabs", help="List debuggable browser targets once")
    navigate_parser = subparsers.add_parser(
        "navigate", help="Send the first browser target to a URL and exit",
    )
    navigate_parser.add_argument("url", type=str, help="URL to navigate to")

    return parser.parse_args(argv)


async def _list_tabs(settings) -> int:
    """Print the targets the discovery endpoint currently lists."""
    from panesd.devtools.discovery import DiscoveryUnavailable, TabDiscovery

    async with TabDiscovery(settings.browser.discovery_url) as discovery:
        try:
            tabs = await discovery.fetch_tabs()
        except DiscoveryUnavailable as e:
            print(f"No targets: {e}")
            return 1

    for index, tab in enumerate(tabs):
        marker = "*" if index == 0 else " "
        print(f"{marker} {tab.id}  {tab.type:<8} {tab.title[:40]:<40} {tab.url}")
    return 0


async def _navigate_once(settings, url: str) -> int:
    """Connect to the first target, issue one navigate, and disconnect."""
    from panesd.devtools.connection import ConnectionFailed, ControlConnection
    from panesd.devtools.discovery import TabDiscovery

    async with TabDiscovery(
        settings.browser.discovery_url, poll_interval=settings.browser.poll_interval
    ) as discovery:
        tab = await discovery.wait_for_tab()

    try:
        conn = await ControlConnection.connect(tab, open_timeout=settings.browser.open_timeout)
    except ConnectionFailed as e:
        print(f"Could not connect: {e}")
        return 1
    try:
        command_id = await conn.send("Page.navigate", {"url": url})
    finally:
        await conn.close()
    print(f"Navigated {tab.id} to {url} (id={command_id})")
    return 0


def _bind_control_socket(host: str, port: int) -> socket.socket:
    family = socket.AF_INET6 if ":" in host else socket.AF_INET
    return socket.create_server((host, port), family=family)


def _serve(settings) -> int:
    import uvicorn

    from panesd.control.server import create_app
    from panesd.service import VideoWallService

    host, port = settings.control.host, settings.control.port
    # Bound before the service exists so a busy port never starts the
    # supervisor.
    try:
        sock = _bind_control_socket(host, port)
    except OSError:
        logger.exception("Cannot serve control surface on %s:%d", host, port)
        return 1

    app = create_app(VideoWallService(settings))
    server = uvicorn.Server(uvicorn.Config(app, host=host, port=port))
    with sock:
        server.run(sockets=[sock])
    if not server.started:
        logger.error("Control surface on %s:%d failed to start", host, port)
        return 1
    return 0


def main(argv: list[str] | None = None) -> None:
    """Main entry point for the panesd CLI."""
    args = parse_args(argv)

    if args.command is None:
        parse_args(["--help"])
        return

    from panesd.config.settings import ConfigurationError, load_settings
    from panesd.utils.logging import setup_logging

    try:
        settings = load_settings(args.config)
    except ConfigurationError as e:
        print(f"panesd: {e}", file=sys.stderr)
        sys.exit(2)

    if args.verbose:
        settings.logging.level = "DEBUG"

    setup_logging(settings.logging)

    if args.command == "run":
        logger.info("Starting video wall supervisor")
        sys.exit(_serve(settings))

    elif args.command == "tabs":
        sys.exit(asyncio.run(_list_tabs(settings)))

    elif args.command == "navigate":
        logger.info("Navigating to %s", args.url)
        sys.exit(asyncio.run(_navigate_once(settings, args.url)))


if __name__ == "__main__":
    main()
