"""Example client that posts an activity event to the ingestion API."""
from __future__ import annotations

import argparse
import os
import uuid
from datetime import datetime, timedelta, timezone

import requests


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Send a sample activity event")
    parser.add_argument(
        "--api-url",
        default=os.environ.get("DEVLOG_API_URL", "http://127.0.0.1:8787"),
        help="Ingestion API base URL (default: %(default)s or DEVLOG_API_URL)",
    )
    sub = parser.add_subparsers(dest="kind", required=True)

    terminal = sub.add_parser("terminal", help="Send a terminal_command event")
    terminal.add_argument("--cwd", default=os.getcwd())
    terminal.add_argument("--command", default="make test")

    browser = sub.add_parser("browser", help="Send a browser_active_span event")
    browser.add_argument("--url", default="https://docs.python.org/3/")
    browser.add_argument("--title", default="Python documentation")
    browser.add_argument("--minutes", type=int, default=5, help="Length of the focus span")
    return parser.parse_args()


def build_event(args: argparse.Namespace) -> dict:
    now = datetime.now(timezone.utc).astimezone()
    event = {
        "source": "send_event.py",
        "event_id": str(uuid.uuid4()),
        "schema_version": 2,
        "end_ts": now.isoformat(),
    }
    if args.kind == "terminal":
        event.update(type="terminal_command", start_ts=now.isoformat(), cwd=args.cwd, command=args.command)
    else:
        start = now - timedelta(minutes=args.minutes)
        event.update(type="browser_active_span", start_ts=start.isoformat(), url=args.url, title=args.title)
    return event


def main() -> None:
    args = parse_args()
    response = requests.post(f"{args.api_url}/events", json=build_event(args), timeout=10)
    response.raise_for_status()
    print("Event stored:", response.json())

    today = datetime.now().date().isoformat()
    stats = requests.get(f"{args.api_url}/stats", params={"date": today}, timeout=10)
    stats.raise_for_status()
    print(stats.text)


if __name__ == "__main__":
    main()
