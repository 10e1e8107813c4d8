"""
Normalization utility helpers.
Decode raw GitHub payloads into normalize.models entities and filter the repository listing.
"""
import logging
from typing import Dict, Any, List, Optional

from errors import DecodeError
from normalize.models import RepositoryRef, ContributionRecord

logger = logging.getLogger(__name__)


def _require(raw: Dict[str, Any], key: str, kind: str):
    if not isinstance(raw, dict):
        raise DecodeError(f"Expected a {kind} object, got {type(raw).__name__}")
    if key not in raw or raw.get(key) is None:
        raise DecodeError(f"{kind} object is missing '{key}'")
    return raw.get(key)


def normalize_repository(raw: Dict[str, Any]) -> RepositoryRef:
    """Create a RepositoryRef from one item of the repository listing.
    Missing fork/private flags are read as False; a missing full_name is a decode failure.
    """
    full_name = _require(raw, 'full_name', 'repository')
    return RepositoryRef(full_name=str(full_name), is_fork=bool(raw.get('fork', False)), is_private=bool(raw.get('private', False)))


def normalize_contributor(raw: Dict[str, Any], repo_full_name: str) -> ContributionRecord:
    """Create a ContributionRecord from one item of a repository's contributor listing, tagged with its repository."""
    login = _require(raw, 'login', 'contributor')
    contributions = _require(raw, 'contributions', 'contributor')
    try:
        count = int(contributions)
    except (TypeError, ValueError):
        raise DecodeError(f"Contributor '{login}' has a non-integer contribution count: {contributions!r}")
    if count < 0:
        raise DecodeError(f"Contributor '{login}' has a negative contribution count: {count}")
    return ContributionRecord(
        login=str(login),
        account_type=str(raw.get('type') or ''),
        contributions=count,
        repo_full_name=repo_full_name,
        profile_url=raw.get('html_url') or '',
        avatar_url=raw.get('avatar_url') or '',
    )


def filter_public_sources(repos: Optional[List[RepositoryRef]]) -> List[RepositoryRef]:
    """Keep only repositories that are neither forks nor private, preserving input order."""
    kept: List[RepositoryRef] = []
    for repo in repos or []:
        if repo.is_fork or repo.is_private:
            logger.info("Excluding %s", repo.full_name)
            continue
        kept.append(repo)
    return kept
