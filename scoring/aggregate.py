"""
Merge per-repository contribution records into one entry per individual.
"""
import logging
from typing import Dict, Iterable

from normalize.models import AggregatedContributor, ContributionRecord

logger = logging.getLogger(__name__)


def aggregate_contributors(records: Iterable[ContributionRecord]) -> Dict[str, AggregatedContributor]:
    """
    Group records by exact (case-sensitive) login, summing contributions and keeping a per-repository breakdown.

    Bots, organizations and any other non-User accounts are dropped. The returned dict preserves the order in
    which each login was first seen, which the ranker relies on to break ties.
    """
    grouped: Dict[str, AggregatedContributor] = {}
    skipped = 0
    for record in records:
        if not record.is_individual:
            skipped += 1
            continue
        existing = grouped.get(record.login)
        if existing is None:
            grouped[record.login] = AggregatedContributor.from_record(record)
            continue
        existing.add(record)
        logger.debug("Aggregated contributions of %s - %d", existing.login, existing.total_contributions)

    logger.info("%d unique contributors after aggregation (%d non-user records skipped)", len(grouped), skipped)
    return grouped
