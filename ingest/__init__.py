"""
Ingest package: GitHub listing client and contributor collection.
"""

from .github import GitHubClient
from .collector import collect_contributions

__all__ = ["GitHubClient", "collect_contributions"]
