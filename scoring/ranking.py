"""
Leaderboard ordering.
Both sorts rely on Python's sort being stable: equal counts keep their incoming order.
"""
from typing import Dict, List, Union, Iterable

from normalize.models import AggregatedContributor, REPOSITORY_DELIMITER


def sort_repositories(contributor: AggregatedContributor) -> AggregatedContributor:
    """Order a contributor's breakdown by contributions (descending) and derive the top/all repository fields."""
    contributor.repo_breakdown = sorted(contributor.repo_breakdown, key=lambda pair: pair[1], reverse=True)
    names = [name for name, _ in contributor.repo_breakdown]
    contributor.top_repository = names[0] if names else None
    contributor.all_repositories = REPOSITORY_DELIMITER.join(names)
    return contributor


def rank_contributors(aggregated: Union[Dict[str, AggregatedContributor], Iterable[AggregatedContributor]]) -> List[AggregatedContributor]:
    """
    Return contributors sorted by total contributions, highest first.

    Accepts the login -> contributor mapping from aggregate_contributors (or any iterable of contributors);
    ties keep the mapping's insertion order.
    """
    contributors = list(aggregated.values()) if isinstance(aggregated, dict) else list(aggregated)
    # sorted(reverse=True) keeps equal keys in original order
    ranked = sorted(contributors, key=lambda c: c.total_contributions, reverse=True)
    for contributor in ranked:
        sort_repositories(contributor)
    return ranked
