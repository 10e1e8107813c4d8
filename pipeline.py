"""
Leaderboard pipeline: list repositories -> filter -> collect contributors -> aggregate -> rank -> write.
"""
import logging
from datetime import datetime, timezone
from typing import Optional

from config import LeaderboardConfig
from errors import EmptyResultError, PersistenceError
from ingest.collector import collect_contributions
from ingest.github import GitHubClient
from normalize.models import Leaderboard
from normalize.util import normalize_repository, filter_public_sources
from report.writer import write_leaderboard
from scoring.aggregate import aggregate_contributors
from scoring.ranking import rank_contributors
from storage.cache import Cache

logger = logging.getLogger(__name__)


def make_client(config: LeaderboardConfig, cache: Optional[Cache] = None) -> GitHubClient:
    """Build a GitHubClient from the run configuration."""
    if not config.token:
        logger.info("No GitHub token configured; unauthenticated requests have a lower rate limit")
    return GitHubClient(
        token=config.token,
        base_url=config.base_url,
        cache=cache,
        cache_max_age=config.cache_max_age,
        timeout=config.timeout,
        max_pages=config.max_pages,
    )


def build_leaderboard(config: LeaderboardConfig, client=None) -> Leaderboard:
    """
    Compute the ranked leaderboard for config.owner without writing anything.

    Raises:
        TransportError / DecodeError: the repository listing could not be fetched or decoded, or a
            contributor fetch failed while on_repo_error is "fail".
        EmptyResultError: the owner has no repositories, or no individual contributors were found.
    """
    client = client or make_client(config)
    owner = config.owner

    raw_repos = client.list_repositories(owner, config.owner_type)
    if not raw_repos:
        raise EmptyResultError(f"No repositories found for {owner}")
    repos = [normalize_repository(r) for r in raw_repos]
    logger.info("%d %s repos found", len(repos), owner)

    eligible = filter_public_sources(repos)
    logger.info("%d of %d repos are public and not forks", len(eligible), len(repos))

    collected = collect_contributions(client, eligible, on_error=config.on_repo_error)
    ranked = rank_contributors(aggregate_contributors(collected.records))
    if not ranked:
        raise EmptyResultError(f"Failed to get contributors for {owner}")
    logger.info("%d contributors ranked for %s", len(ranked), owner)

    return Leaderboard(
        owner=owner,
        contributors=ranked,
        repositories_listed=len(repos),
        repositories_scanned=collected.scanned,
        failed_repositories=[name for name, _ in collected.failed],
    )


def archive_leaderboard(config: LeaderboardConfig, client=None) -> Leaderboard:
    """
    Build the leaderboard and write it to config.out_file.

    A write failure is logged and does not discard the result: the returned Leaderboard then has
    output_path None. Errors from build_leaderboard propagate unchanged.
    """
    leaderboard = build_leaderboard(config, client)
    try:
        leaderboard.output_path = write_leaderboard(
            leaderboard.contributors,
            path=config.out_file,
            mode=config.write_mode,
            fmt=config.output,
            owner=config.owner,
            generated_at=datetime.now(timezone.utc).isoformat(),
        )
    except PersistenceError as exc:
        logger.error("%s", exc)
    return leaderboard
