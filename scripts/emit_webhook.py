#!/usr/bin/env python3
"""
Send a Strava-shaped webhook event to a running league backend.

Useful for exercising the push path without a real Strava subscription.
The backend still fetches the activity from Strava, so the owner must be a
connected participant and the activity id must be real.

Usage examples:
  - New upload:
      python scripts/emit_webhook.py --base-url http://localhost:8000 --owner 1001 --activity 123456789
  - Activity deleted on Strava:
      python scripts/emit_webhook.py --base-url http://localhost:8000 --owner 1001 --activity 123456789 --aspect delete
  - Athlete revoked access:
      python scripts/emit_webhook.py --base-url http://localhost:8000 --owner 1001 --deauthorize
  - Check the subscription handshake:
      python scripts/emit_webhook.py --base-url http://localhost:8000 --verify-token <token>
"""

from __future__ import annotations

import argparse
import sys
import time

try:
    import requests  # type: ignore
except Exception as exc:  # pragma: no cover
    print("This script requires the 'requests' package.\nInstall with: pip install requests", file=sys.stderr)
    raise


def build_event(owner: int, activity: int | None, aspect: str, deauthorize: bool) -> dict:
    if deauthorize:
        return {
            "object_type": "athlete",
            "aspect_type": "update",
            "object_id": owner,
            "owner_id": owner,
            "subscription_id": 0,
            "event_time": int(time.time()),
            "updates": {"authorized": "false"},
        }
    if activity is None:
        raise SystemExit("--activity is required unless --deauthorize is given")
    return {
        "object_type": "activity",
        "aspect_type": aspect,
        "object_id": activity,
        "owner_id": owner,
        "subscription_id": 0,
        "event_time": int(time.time()),
        "updates": {},
    }


def post_event(base_url: str, payload: dict) -> dict:
    url = f"{base_url.rstrip('/')}/webhooks/strava"
    r = requests.post(url, json=payload, timeout=15)
    if r.status_code >= 300:
        raise RuntimeError(f"webhooks/strava -> HTTP {r.status_code}: {r.text}")
    return r.json()


def verify(base_url: str, token: str) -> dict:
    url = f"{base_url.rstrip('/')}/webhooks/strava"
    params = {"hub.mode": "subscribe", "hub.verify_token": token, "hub.challenge": "emit-webhook"}
    r = requests.get(url, params=params, timeout=15)
    if r.status_code >= 300:
        raise RuntimeError(f"handshake -> HTTP {r.status_code}: {r.text}")
    return r.json()


def main() -> None:
    ap = argparse.ArgumentParser(description="Emit a Strava webhook event to the league backend")
    ap.add_argument("--base-url", required=True, help="API base URL (e.g., http://localhost:8000)")
    ap.add_argument("--owner", type=int, help="Strava athlete id of the participant")
    ap.add_argument("--activity", type=int, help="Strava activity id")
    ap.add_argument("--aspect", choices=["create", "update", "delete"], default="create")
    ap.add_argument("--deauthorize", action="store_true", help="Send an athlete deauthorization event")
    ap.add_argument("--verify-token", help="Only run the subscription handshake with this token")
    args = ap.parse_args()

    if args.verify_token:
        print(verify(args.base_url, args.verify_token))
        return
    if args.owner is None:
        raise SystemExit("--owner is required")

    payload = build_event(args.owner, args.activity, args.aspect, args.deauthorize)
    print(post_event(args.base_url, payload))


if __name__ == "__main__":
    main()
