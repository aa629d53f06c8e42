#!/usr/bin/env python3
"""
Start the Family Budget server.

Both participants use the app from their phones, so the address is shown as a
QR code in the terminal. Binding to 0.0.0.0 shows the LAN address instead.

Usage:
    python run.py [--port PORT] [--host HOST] [--data-dir DIR] [--sqlite] [--open]
"""

import argparse
import os
import socket
import webbrowser

import qrcode
import uvicorn

from family_budget.config import load_settings
from family_budget.logging import configure_logging, get_logger

logger = get_logger(__name__)


def lan_address() -> str:
    """Address other devices on the network can reach, or loopback if offline."""
    with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as sock:
        try:
            # No packet is sent; this only selects the outgoing interface
            sock.connect(("10.255.255.255", 1))
            return sock.getsockname()[0]
        except OSError:
            return "127.0.0.1"


def show_address(url: str) -> None:
    qr = qrcode.QRCode(error_correction=qrcode.constants.ERROR_CORRECT_L, box_size=1, border=1)
    qr.add_data(url)
    qr.make(fit=True)
    qr.print_ascii(invert=True)


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Family Budget server")
    parser.add_argument("--port", type=int, default=3000)
    parser.add_argument("--host", default="0.0.0.0", help="Interface to bind, 0.0.0.0 for the whole LAN")
    parser.add_argument("--data-dir", help="Directory for the ledger files (overrides BUDGET_DATA_DIR)")
    parser.add_argument("--sqlite", action="store_true", help="Keep the ledger in SQLite instead of JSON files")
    parser.add_argument("--open", action="store_true", help="Open the app in a local browser")
    parser.add_argument("--reload", action="store_true", help="Restart on code changes")
    return parser.parse_args()


def main():
    args = parse_args()

    # The app reads its settings from the environment when uvicorn imports it
    if args.data_dir:
        os.environ["BUDGET_DATA_DIR"] = args.data_dir
    if args.sqlite:
        os.environ["BUDGET_STORE_BACKEND"] = "sqlite"

    configure_logging()
    settings = load_settings()

    host = lan_address() if args.host == "0.0.0.0" else args.host
    url = f"http://{host}:{args.port}"

    logger.info(f"Ledger: {settings.data_dir.resolve()} ({settings.store_backend})")
    if not settings.fns_api_token:
        logger.warning("FNS_API_TOKEN is not set, scanned receipts will be saved without items")
    if not settings.claude_api_key:
        logger.warning("CLAUDE_API_KEY is not set, items will not be classified automatically")

    print(f"\n  Family Budget: {url}\n")
    try:
        show_address(url)
    except UnicodeEncodeError:
        logger.info("Terminal cannot draw the QR code, use the URL above")
    print()

    if args.open:
        webbrowser.open(url)

    uvicorn.run(
        "family_budget.main:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level="info",
    )


if __name__ == "__main__":
    main()
