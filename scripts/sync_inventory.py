#!/usr/bin/env python3
"""
Run a legacy inventory sync through the Storefront API

This script:
1. Calls the streaming sync endpoint for one legacy site code
2. Logs each progress frame as it arrives
3. Logs the final stats and any per-item errors

Usage:
    python scripts/sync_inventory.py --site-code 007 --api-url http://localhost:8000

    # Only recompute category item counts
    python scripts/sync_inventory.py --recount-only --api-url http://localhost:8000

    # List the sites the legacy system knows about
    python scripts/sync_inventory.py --list-sites
"""

import argparse
import json
import logging
import sys
from typing import Any, Dict, Iterator, Optional

import httpx

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(levelname)s - %(message)s',
    datefmt='%Y-%m-%d %H:%M:%S'
)
logger = logging.getLogger(__name__)

API_PREFIX = "/api/storefront"

STAT_LABELS = [
    ("totalFetched", "Fetched from legacy"),
    ("productsCreated", "Products created"),
    ("productsUpdated", "Products updated"),
    ("inventoriesCreated", "Inventories created"),
    ("inventoriesUpdated", "Inventories updated"),
    ("categoriesCreated", "Categories created"),
    ("sitesCreated", "Sites created"),
    ("errors", "Errors"),
]


def parse_sse_lines(lines: Iterator[str]) -> Iterator[Dict[str, Any]]:
    """Decode `data: <json>` frames from a server-sent event stream"""
    for line in lines:
        if not line.startswith("data: "):
            continue
        try:
            yield json.loads(line[len("data: "):])
        except json.JSONDecodeError as e:
            logger.warning(f"Skipping malformed frame: {e}")


def log_summary(event: Dict[str, Any]):
    stats = event.get("stats") or {}
    logger.info("=" * 60)
    logger.info(event.get("message", "Sync finished"))
    for key, label in STAT_LABELS:
        logger.info(f"  {label:<22} {stats.get(key, 0)}")
    for error in event.get("errors") or []:
        logger.warning(f"  {error}")
    logger.info("=" * 60)


def run_sync(client: httpx.Client, site_code: str, progress_every: int) -> bool:
    """Stream one sync run; True when it completed"""
    logger.info(f"Starting inventory sync for site {site_code}")

    with client.stream("POST", f"{API_PREFIX}/inventory/sync-stream", json={"siteCode": site_code}) as response:
        if response.status_code != 200:
            response.read()
            logger.error(f"Sync request rejected ({response.status_code}): {response.text}")
            return False

        for event in parse_sse_lines(response.iter_lines()):
            event_type = event.get("type")
            if event_type == "progress":
                current = event.get("current", 0)
                total = event.get("total", 0)
                if current == 0 or current == total or current % progress_every == 0:
                    logger.info(f"[{current}/{total}] {event.get('message', '')}")
            elif event_type == "complete":
                log_summary(event)
                return True
            elif event_type == "error":
                logger.error(f"Sync failed: {event.get('message')}")
                return False

    logger.error("Stream ended without a completion event")
    return False


def recount_categories(client: httpx.Client) -> bool:
    response = client.post(f"{API_PREFIX}/categories/recount")
    if response.status_code != 200:
        logger.error(f"Recount failed ({response.status_code}): {response.text}")
        return False
    logger.info(f"Updated item counts for {response.json().get('categoriesUpdated', 0)} categories")
    return True


def list_sites(client: httpx.Client) -> bool:
    response = client.get(f"{API_PREFIX}/inventory/sites")
    if response.status_code != 200:
        logger.error(f"Could not list sites ({response.status_code}): {response.text}")
        return False
    for site in response.json():
        logger.info(f"{site['code']:<8} {site['name']}")
    return True


def main(argv: Optional[list] = None) -> int:
    parser = argparse.ArgumentParser(description="Sync inventory from the legacy system via the Storefront API")
    parser.add_argument("--api-url", default="http://localhost:8000", help="Storefront service base URL")
    parser.add_argument("--site-code", help="Legacy site code to sync (e.g. 007)")
    parser.add_argument("--recount-only", action="store_true", help="Only recompute category item counts")
    parser.add_argument("--list-sites", action="store_true", help="List legacy sites and exit")
    parser.add_argument("--progress-every", type=int, default=100, help="Log every Nth progress frame")
    parser.add_argument("--timeout", type=float, default=30.0, help="Connect/read timeout between frames, in seconds")
    args = parser.parse_args(argv)

    if not (args.site_code or args.recount_only or args.list_sites):
        parser.error("one of --site-code, --recount-only or --list-sites is required")

    with httpx.Client(base_url=args.api_url, timeout=args.timeout) as client:
        try:
            if args.list_sites:
                ok = list_sites(client)
            elif args.recount_only:
                ok = recount_categories(client)
            else:
                ok = run_sync(client, args.site_code, max(args.progress_every, 1))
        except httpx.HTTPError as e:
            logger.error(f"Request to {args.api_url} failed: {e}")
            ok = False

    return 0 if ok else 1


if __name__ == "__main__":
    sys.exit(main())
