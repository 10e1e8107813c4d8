"""
Data models for repositories, per-repository contribution records and aggregated contributors.
"""

from typing import List, Optional, Tuple

ACCOUNT_TYPE_USER = "User"

# delimiter used when listing every repository a contributor touched
REPOSITORY_DELIMITER = " | "


class RepositoryRef:
    """
    One repository from the owner's repository listing.
    """
    def __init__(self, full_name: str, is_fork: bool = False, is_private: bool = False):
        self.full_name = full_name  # <owner>/<name>
        self.is_fork = is_fork
        self.is_private = is_private

    def __repr__(self):
        return f"RepositoryRef({self.full_name!r}, is_fork={self.is_fork}, is_private={self.is_private})"


class ContributionRecord:
    """
    One account's contribution count to one repository, as reported by the platform.
    repo_full_name is attached during collection; it is not part of the raw payload.
    """
    def __init__(self, login: str, account_type: str, contributions: int, repo_full_name: str, profile_url: str = "", avatar_url: str = ""):
        self.login = login
        self.account_type = account_type  # User/Bot/Organization
        self.contributions = contributions
        self.repo_full_name = repo_full_name
        self.profile_url = profile_url
        self.avatar_url = avatar_url

    @property
    def is_individual(self) -> bool:
        return self.account_type == ACCOUNT_TYPE_USER

    def __repr__(self):
        return f"ContributionRecord({self.login!r}, {self.account_type!r}, {self.contributions}, {self.repo_full_name!r})"


class AggregatedContributor:
    """
    One unique individual across the whole scan.

    login, profile_url and avatar_url come from the first record seen for the login.
    repo_breakdown holds (repo_full_name, contributions) pairs in insertion order until the
    ranker re-orders it and fills in top_repository and all_repositories.
    """
    def __init__(self, login: str, profile_url: str = "", avatar_url: str = "", total_contributions: int = 0, repo_breakdown: Optional[List[Tuple[str, int]]] = None):
        self.login = login
        self.profile_url = profile_url
        self.avatar_url = avatar_url
        self.total_contributions = total_contributions
        self.repo_breakdown = repo_breakdown or []
        self.top_repository: Optional[str] = None
        self.all_repositories: Optional[str] = None

    @classmethod
    def from_record(cls, record: ContributionRecord) -> "AggregatedContributor":
        return cls(
            login=record.login,
            profile_url=record.profile_url,
            avatar_url=record.avatar_url,
            total_contributions=record.contributions,
            repo_breakdown=[(record.repo_full_name, record.contributions)],
        )

    def add(self, record: ContributionRecord):
        """Fold another record for the same login into this contributor."""
        self.repo_breakdown.append((record.repo_full_name, record.contributions))
        self.total_contributions += record.contributions

    @property
    def handle(self) -> str:
        return "@" + self.login

    def to_dict(self) -> dict:
        return {
            'login': self.login,
            'total_contributions': self.total_contributions,
            'profile_url': self.profile_url,
            'avatar_url': self.avatar_url,
            'top_repository': self.top_repository,
            'all_repositories': self.all_repositories,
            'repositories': [{'repo_full_name': name, 'contributions': count} for name, count in self.repo_breakdown],
        }

    def __repr__(self):
        return f"AggregatedContributor({self.login!r}, total_contributions={self.total_contributions}, repos={len(self.repo_breakdown)})"


class CollectionResult:
    """
    Output of the contributor collector.
    failed lists (repo_full_name, error) for repositories whose contributor fetch failed, so a failed
    fetch is never mistaken for a repository with no contributors.
    """
    def __init__(self, records: Optional[List[ContributionRecord]] = None, scanned: Optional[List[str]] = None, failed: Optional[List[Tuple[str, Exception]]] = None):
        self.records = records or []
        self.scanned = scanned or []
        self.failed = failed or []


class Leaderboard:
    """
    Final result of one run: the ranked contributors plus what was scanned and where the report went.
    output_path is None when no report was written.
    """
    def __init__(self, owner: str, contributors: List[AggregatedContributor], repositories_listed: int = 0, repositories_scanned: Optional[List[str]] = None, failed_repositories: Optional[List[str]] = None, output_path: Optional[str] = None):
        self.owner = owner
        self.contributors = contributors
        self.repositories_listed = repositories_listed
        self.repositories_scanned = repositories_scanned or []
        self.failed_repositories = failed_repositories or []
        self.output_path = output_path

    @property
    def handles(self) -> List[str]:
        return [c.handle for c in self.contributors]
