#!/usr/bin/env python3
"""
Send a deal to a running Deal Relay server, as the automation pipeline would.

Useful for checking the operator frontend without the pipeline.

Usage:
    python scripts/send_test_deal.py --contact "06 12 34 56 78"
    python scripts/send_test_deal.py --id d1 --contact 0601020304 --program "Business creation"
    python scripts/send_test_deal.py --url http://localhost:3000 --token my-secret --contact 0600000000
"""

from __future__ import annotations

import argparse
import os
import sys
import time
from pathlib import Path
from typing import Any, Dict, List, Optional

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

import httpx
from dotenv import load_dotenv

from api.config import DEFAULT_API_TOKEN


def build_payload(args: argparse.Namespace) -> Dict[str, Any]:
    payload: Dict[str, Any] = {
        "id": args.id or f"manual-{int(time.time() * 1000)}",
        "contact": args.contact,
    }
    for field in ("channel", "source", "program", "reference_url"):
        value = getattr(args, field)
        if value:
            payload[field] = value
    return payload


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Send a deal to the Deal Relay API")
    parser.add_argument("--url", default="http://localhost:3000", help="Server base URL")
    parser.add_argument("--token", default=None, help="API token (defaults to API_TOKEN env var)")
    parser.add_argument("--id", default=None, help="Deal id (generated when omitted)")
    parser.add_argument("--contact", required=True, help="Contact phone number")
    parser.add_argument("--channel", default=None)
    parser.add_argument("--source", default=None)
    parser.add_argument("--program", default=None)
    parser.add_argument("--reference-url", dest="reference_url", default=None)
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    load_dotenv(dotenv_path=Path(__file__).parent.parent / ".env")
    args = parse_args(argv)
    token = args.token or os.getenv("API_TOKEN") or DEFAULT_API_TOKEN
    payload = build_payload(args)

    try:
        response = httpx.post(
            f"{args.url.rstrip('/')}/api/deal",
            json=payload,
            headers={"Authorization": f"Bearer {token}"},
            timeout=10.0,
        )
    except httpx.HTTPError as exc:
        print(f"[ERROR] Could not reach server: {exc}")
        return 1

    if response.is_success:
        print(f"[SUCCESS] Deal {payload['id']} sent")
        return 0

    print(f"[ERROR] Server rejected deal {payload['id']} (HTTP {response.status_code})")
    print(f"  Response: {response.text}")
    return 1


if __name__ == "__main__":
    sys.exit(main())
