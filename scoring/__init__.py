"""
Scoring package: aggregate contribution records and rank contributors.
"""

from .aggregate import aggregate_contributors
from .ranking import rank_contributors

__all__ = ["aggregate_contributors", "rank_contributors"]
