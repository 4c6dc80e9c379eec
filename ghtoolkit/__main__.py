"""Entry point for ``python -m ghtoolkit``."""

from __future__ import annotations

import argparse
import logging
import sys

import httpx

from ghtoolkit.config import settings
from ghtoolkit.logging_config import setup_logging
from ghtoolkit.sdk import GitHubClient, GitHubError

logger = logging.getLogger(__name__)


def show_rate_limit(client: GitHubClient, as_json: bool = False) -> None:
    """Print the quota of every rate-limit bucket."""
    status = client.rate_limit_status()
    if as_json:
        print(status.model_dump_json(indent=2))
        return
    for name, snapshot in status.snapshots().items():
        print(
            f"{name}: {snapshot.remaining}/{snapshot.limit} "
            f"(resets {snapshot.reset_at.isoformat()})"
        )


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="GitHub toolkit")
    sub = parser.add_subparsers(dest="command", required=True)
    rl = sub.add_parser("rate-limit", help="Show the current API quota")
    rl.add_argument("--json", action="store_true", help="Print the raw JSON model")
    args = parser.parse_args(argv)

    setup_logging(settings.log_level, settings.log_format)

    try:
        with GitHubClient.from_settings(settings) as client:
            show_rate_limit(client, as_json=args.json)
    except (GitHubError, httpx.HTTPError) as exc:
        logger.error("Rate limit query failed: %s", exc)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
