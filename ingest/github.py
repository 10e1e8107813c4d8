"""
GitHub ingestion client: paginated retrieval of an owner's repositories and each repository's contributors.
A missing token is not an error; requests go out unauthenticated with GitHub's lower request quota.
"""
import logging
from typing import List, Dict, Any, Optional
from urllib.parse import urlparse

from errors import TransportError, DecodeError
from storage.cache import cached_get, page_cache_key, Cache
from storage.retry import DEFAULT_TIMEOUT

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.github.com"
USER_AGENT = "gh-contributors"

# GitHub's maximum page size; a page shorter than this is the last one
PER_PAGE = 100

OWNER_TYPES = ("org", "user")


class GitHubClient:
    """GitHub REST client for the two listings the leaderboard needs."""

    def __init__(
        self,
        token: Optional[str] = None,
        base_url: Optional[str] = None,
        cache: Optional[Cache] = None,
        cache_max_age: Optional[float] = None,
        timeout: float = DEFAULT_TIMEOUT,
        max_retries: Optional[int] = None,
        max_pages: Optional[int] = None,
    ):
        self.token = token
        self.base_url = (base_url or DEFAULT_BASE_URL).rstrip("/")
        parsed = urlparse(self.base_url)
        # cache keys are scoped to the API server
        self.cache_host = (parsed.netloc + parsed.path) or self.base_url
        self.headers = {
            "Accept": "application/vnd.github+json",
            "User-Agent": USER_AGENT,
        }
        if self.token:
            self.headers["Authorization"] = f"Bearer {self.token}"
        self.cache = cache
        self.cache_max_age = cache_max_age
        self.timeout = timeout
        self.max_retries = max_retries
        self.max_pages = max_pages

    def _get_page(self, url: str, page: int, cache_key: Optional[str] = None) -> List[Dict[str, Any]]:
        """Fetch and decode one page. Raises TransportError or DecodeError."""
        params = {"per_page": PER_PAGE, "page": page}
        logger.info("GET %s page=%d", url, page)
        res = cached_get(
            url,
            headers=self.headers,
            params=params,
            cache=self.cache,
            cache_key=cache_key,
            max_age=self.cache_max_age,
            timeout=self.timeout,
            max_retries=self.max_retries,
        )
        status = res.get('status', 0)
        data = res.get('response')
        if status == 0:
            raise TransportError(f"Request to {url} (page {page}) failed: {data}", url=url)
        if not 200 <= status < 300:
            message = data.get('message') if isinstance(data, dict) else data
            raise TransportError(f"Request to {url} (page {page}) returned HTTP {status}: {message}", url=url, status=status)
        if not isinstance(data, list):
            raise DecodeError(f"Expected a JSON array from {url} (page {page}), got {type(data).__name__}", url=url)
        return data

    def fetch_all(self, url: str, start_page: int = 1, cache_resource: Optional[str] = None, cache_id: Optional[str] = None) -> List[Dict[str, Any]]:
        """Return every item of a paginated collection, in page order.

        A full page (PER_PAGE items) means another page may exist. Failures on the first page propagate;
        a failure on a later page ends pagination and keeps what was already fetched.
        """
        items: List[Dict[str, Any]] = []
        page = start_page
        while True:
            cache_key = page_cache_key(cache_resource, cache_id, page, PER_PAGE, self.cache_host) if cache_resource else None
            try:
                data = self._get_page(url, page, cache_key)
            except (TransportError, DecodeError) as exc:
                if page == start_page:
                    raise
                logger.warning("No more pages for %s after page %d: %s", url, page - 1, exc)
                break
            items.extend(data)
            if len(data) < PER_PAGE:
                break
            if self.max_pages is not None and page - start_page + 1 >= self.max_pages:
                logger.warning("Stopping %s at the %d page cap; more items may exist", url, self.max_pages)
                break
            page += 1
        return items

    def repos_url(self, owner: str, owner_type: str = "org") -> str:
        if owner_type not in OWNER_TYPES:
            raise ValueError(f"Unknown owner type '{owner_type}'; expected one of {', '.join(OWNER_TYPES)}")
        segment = "orgs" if owner_type == "org" else "users"
        return f"{self.base_url}/{segment}/{owner}/repos"

    def list_repositories(self, owner: str, owner_type: str = "org") -> List[Dict[str, Any]]:
        """Raw repository objects owned by an organization or user account."""
        return self.fetch_all(self.repos_url(owner, owner_type), cache_resource="repos", cache_id=f"{owner_type}:{owner}")

    def list_contributors(self, repo_full_name: str) -> List[Dict[str, Any]]:
        """Raw contributor objects for one repository (owner/name)."""
        url = f"{self.base_url}/repos/{repo_full_name}/contributors"
        return self.fetch_all(url, cache_resource="contributors", cache_id=repo_full_name)
