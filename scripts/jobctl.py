#!/usr/bin/env python3
"""Inspect and control the scheduled jobs through the HTTP control server.

Usage examples:
    # Status of every job
    python scripts/jobctl.py status

    # Status of one job
    python scripts/jobctl.py status currency

    # Run the cost calculation now for a specific period
    python scripts/jobctl.py trigger hpp-actual --key 202501

    # Stop / start the daily trigger
    python scripts/jobctl.py stop currency
    python scripts/jobctl.py start currency
"""

import argparse
import json
import sys
from pathlib import Path

import httpx

# Allow running from project root
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from dailyjobs.config import settings

DEFAULT_URL = f"http://127.0.0.1:{settings.http_port}"


def call(base_url: str, action: str, job: str | None, key: str | None) -> httpx.Response:
    """Send the request for *action* and return the response."""
    if action == "status" and job is None:
        return httpx.get(f"{base_url}/jobs", timeout=10)
    if job is None:
        print(f"ERROR: '{action}' needs a job name", file=sys.stderr)
        sys.exit(2)

    url = f"{base_url}/jobs/{job}/scheduler/{action}"
    if action == "status":
        return httpx.get(url, timeout=10)
    if action == "trigger":
        # Attempts can run for minutes; never give up before the server does.
        return httpx.post(url, json={"key": key} if key else None, timeout=None)
    return httpx.post(url, timeout=10)


def main() -> None:
    parser = argparse.ArgumentParser(description="Control the daily job schedulers")
    parser.add_argument("action", choices=["status", "start", "stop", "trigger"])
    parser.add_argument("job", nargs="?", help="Job name, e.g. currency or hpp-actual")
    parser.add_argument("--key", help="Idempotency key override for trigger")
    parser.add_argument("--url", default=DEFAULT_URL, help="Control server base URL")
    args = parser.parse_args()

    try:
        resp = call(args.url.rstrip("/"), args.action, args.job, args.key)
    except httpx.HTTPError as exc:
        print(f"ERROR: request failed: {exc}", file=sys.stderr)
        sys.exit(1)

    print(json.dumps(resp.json(), indent=2))
    if resp.status_code >= 400:
        sys.exit(1)


if __name__ == "__main__":
    main()
