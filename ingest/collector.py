"""
Contributor collection across an owner's eligible repositories.
Repositories are fetched one after another so every request draws on the same rate-limit budget in a
deterministic order; downstream ranking ties depend on that order.
"""
import logging
from typing import Iterable

from errors import TransportError, DecodeError
from normalize.models import RepositoryRef, CollectionResult
from normalize.util import normalize_contributor

logger = logging.getLogger(__name__)

ON_ERROR_SKIP = "skip"
ON_ERROR_FAIL = "fail"
ON_ERROR_POLICIES = (ON_ERROR_SKIP, ON_ERROR_FAIL)


def collect_contributions(client, repositories: Iterable[RepositoryRef], on_error: str = ON_ERROR_SKIP) -> CollectionResult:
    """
    Fetch the contributors of every repository and tag each record with its repository.

    Parameters:
        client: object exposing list_contributors(repo_full_name) -> list of raw contributor dicts.
        repositories: filtered repositories, in the order they should be scanned.
        on_error: "skip" logs a failed repository and continues; "fail" re-raises the first failure.

    Returns:
        CollectionResult with the flat record list, the scanned repository names and the failures.
    """
    if on_error not in ON_ERROR_POLICIES:
        raise ValueError(f"Unknown error policy '{on_error}'; expected one of {', '.join(ON_ERROR_POLICIES)}")

    result = CollectionResult()
    for repo in repositories:
        try:
            raw = client.list_contributors(repo.full_name)
            records = [normalize_contributor(item, repo.full_name) for item in raw]
        except (TransportError, DecodeError) as exc:
            if on_error == ON_ERROR_FAIL:
                raise
            logger.warning("Skipping %s: contributor fetch failed: %s", repo.full_name, exc)
            result.failed.append((repo.full_name, exc))
            continue
        logger.info("%d contributors found for %s", len(records), repo.full_name)
        result.scanned.append(repo.full_name)
        result.records.extend(records)

    logger.info("%d contributor records collected before aggregation", len(result.records))
    return result
