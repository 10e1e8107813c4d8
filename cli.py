"""
CLI entry point for the contributor leaderboard. Wires the pipeline: ingest -> normalize -> score -> report
"""

import argparse
import json
import logging
import sys
from typing import Optional

from config import build_config, load_config_file
from errors import LeaderboardError, EmptyResultError
from pipeline import archive_leaderboard, make_client
from report.renderer import FORMATS
from storage.cache import Cache
from storage.retry import configure_retry

logger = logging.getLogger("leaderboard")

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_NOT_WRITTEN = 3

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def _print_json(obj):
    print(json.dumps(obj, indent=2, default=str))


def _clear_cache(cache: Cache, force: bool):
    if not force:
        confirm = input(f"Are you sure you want to clear the cache at {cache.path}? This cannot be undone. [y/N]: ")
        if confirm.strip().lower() not in ("y", "yes"):
            print("Aborted cache clear.")
            return
    removed = cache.clear()
    print(f"Cleared {removed} cached page(s) from {cache.path}")


def _cache_action_path(args) -> str:
    """--cache wins, then cache_path from the --config file, then cache.db."""
    if args.cache:
        return args.cache
    if args.config:
        return load_config_file(args.config).get('cache_path') or "cache.db"
    return "cache.db"


def _handle_cache_actions(args) -> bool:
    """Run --cache-info / --cache-clear if requested. Returns True when the CLI should exit afterwards."""
    if not (args.cache_info or args.cache_clear):
        return False
    with Cache(_cache_action_path(args)) as cache:
        if args.cache_info:
            _print_json(cache.stats())
        if args.cache_clear:
            _clear_cache(cache, args.force)
    return True


def _config_overrides(args) -> dict:
    """Map parsed CLI flags onto configuration keys; unset flags stay None so the config file/env can apply."""
    return {
        'owner': args.owner,
        'token': args.token,
        'owner_type': args.owner_type,
        'base_url': args.base_url,
        'out_file': args.out_file,
        'output': args.output,
        'write_mode': 'append' if args.append else None,
        'on_repo_error': 'fail' if args.fail_fast else None,
        'max_pages': args.max_pages,
        'timeout': args.timeout,
        'cache_path': args.cache,
        'cache_max_age': args.cache_max_age,
    }


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Rank contributors across every public, non-fork repository of a GitHub account")
    parser.add_argument("--owner", type=str, default=None, help="Organization or user handle to scan (or set LEADERBOARD_OWNER env var)")
    parser.add_argument("--token", type=str, default=None, help="GitHub token (or set GITHUB_TOKEN env var); optional, raises the rate limit")
    parser.add_argument("--owner-type", choices=("org", "user"), default=None, help="Whether the owner is an organization (default) or a user account")
    parser.add_argument("--config", type=str, default="", help="Path to a YAML file with configuration values")
    parser.add_argument("--base-url", type=str, default=None, help="GitHub API base URL (default: https://api.github.com)")
    parser.add_argument("--output", choices=FORMATS, default=None, help="Report format (default: csv)")
    parser.add_argument("--out-file", type=str, default=None, help="Report path (default: gh-contributors-leaderboard.csv)")
    parser.add_argument("--append", action="store_true", help="Append rows to an existing CSV report instead of overwriting it")
    parser.add_argument("--fail-fast", action="store_true", help="Abort the run when any repository's contributors cannot be fetched")
    parser.add_argument("--max-pages", type=int, default=None, help="Stop paginating any single listing after this many pages")
    parser.add_argument("--timeout", type=float, default=None, help="Per-request timeout in seconds (default: 30)")
    parser.add_argument("--log-level", type=str, default="INFO", help="Logging level (DEBUG, INFO, WARNING, ERROR)")
    parser.add_argument("--cache", type=str, default=None, help="Path to SQLite page cache file (optional)")
    parser.add_argument("--cache-max-age", type=float, default=None, help="Ignore cached pages older than this many seconds")
    # retry/backoff knobs: optional CLI overrides. Environment variables LEADERBOARD_MAX_RETRIES, LEADERBOARD_BACKOFF_BASE,
    # LEADERBOARD_BACKOFF_JITTER, LEADERBOARD_MAX_BACKOFF may also be used to set defaults.
    parser.add_argument("--max-retries", type=int, default=None, help="Maximum attempts per HTTP request (overrides LEADERBOARD_MAX_RETRIES env)")
    parser.add_argument("--backoff-base", type=float, default=None, help="Base backoff seconds (overrides LEADERBOARD_BACKOFF_BASE env)")
    parser.add_argument("--backoff-jitter", type=float, default=None, help="Jitter seconds added to backoff (overrides LEADERBOARD_BACKOFF_JITTER env)")
    parser.add_argument("--max-backoff", type=float, default=None, help="Maximum backoff cap in seconds (overrides LEADERBOARD_MAX_BACKOFF env)")
    parser.add_argument("--cache-info", action="store_true", help="Show cache statistics (uses --cache, the config file cache_path, or cache.db) and exit")
    parser.add_argument("--cache-clear", action="store_true", help="Clear the page cache (uses --cache, the config file cache_path, or cache.db) and exit")
    parser.add_argument("--force", action="store_true", help="Clear the cache without confirmation")
    return parser


def main(argv: Optional[list] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(level=getattr(logging, args.log_level.upper(), logging.INFO), format=LOG_FORMAT)

    configure_retry(max_retries=args.max_retries, backoff_base=args.backoff_base, backoff_jitter=args.backoff_jitter, max_backoff=args.max_backoff)

    try:
        if _handle_cache_actions(args):
            return EXIT_OK
        config = build_config(_config_overrides(args), config_file=args.config or None)
    except (OSError, ValueError) as exc:
        logger.error("Invalid configuration: %s", exc)
        return EXIT_FAILED
    logger.debug("Configuration: %s", config.redacted())

    cache = Cache(config.cache_path) if config.cache_path else None
    try:
        leaderboard = archive_leaderboard(config, make_client(config, cache))
    except EmptyResultError as exc:
        logger.error("%s", exc)
        return EXIT_FAILED
    except LeaderboardError as exc:
        logger.error("Leaderboard for %s failed: %s", config.owner, exc)
        return EXIT_FAILED
    finally:
        if cache:
            cache.close()

    if leaderboard.failed_repositories:
        logger.warning("Skipped %d repositories: %s", len(leaderboard.failed_repositories), ", ".join(leaderboard.failed_repositories))

    # summary: handles of contributors sorted by their contributions
    print(", ".join(leaderboard.handles))
    if leaderboard.output_path is None:
        return EXIT_NOT_WRITTEN
    print(f"Wrote report to {leaderboard.output_path}")
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
