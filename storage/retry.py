"""
Retry/backoff and rate-limit-aware HTTP GET helper.
Every GET the client issues goes through perform_request_with_retries so timeouts, transient failures
and GitHub's Retry-After / X-RateLimit-* signals are handled in one place.
"""

import os
import time
import random
import logging
import email.utils
from datetime import datetime, timezone
from typing import Optional, Dict, Any
import requests

logger = logging.getLogger(__name__)

# retry/backoff defaults from environment
DEFAULT_MAX_RETRIES = int(os.getenv("LEADERBOARD_MAX_RETRIES", "3"))
DEFAULT_BACKOFF_BASE = float(os.getenv("LEADERBOARD_BACKOFF_BASE", "0.5"))
_env_jitter = os.getenv("LEADERBOARD_BACKOFF_JITTER")
DEFAULT_BACKOFF_JITTER = float(_env_jitter) if _env_jitter is not None and _env_jitter != "" else None
DEFAULT_MAX_BACKOFF = float(os.getenv("LEADERBOARD_MAX_BACKOFF", "120.0"))
DEFAULT_TIMEOUT = 30.0

# longest single wait honoured from Retry-After / X-RateLimit-Reset
MAX_RATE_LIMIT_WAIT = 300.0

# runtime-overrides
_runtime_max_retries: Optional[int] = None
_runtime_backoff_base: Optional[float] = None
_runtime_backoff_jitter: Optional[float] = None
_runtime_max_backoff: Optional[float] = None


def configure_retry(
    max_retries: Optional[int] = None, backoff_base: Optional[float] = None, backoff_jitter: Optional[float] = None, max_backoff: Optional[float] = None
):
    """Configure retry/backoff defaults at runtime (e.g. from CLI)."""
    global _runtime_max_retries, _runtime_backoff_base, _runtime_backoff_jitter, _runtime_max_backoff
    if max_retries is not None:
        _runtime_max_retries = int(max_retries)
    if backoff_base is not None:
        _runtime_backoff_base = float(backoff_base)
    if backoff_jitter is not None:
        _runtime_backoff_jitter = float(backoff_jitter)
    if max_backoff is not None:
        _runtime_max_backoff = float(max_backoff)


def reset_retry():
    """Drop runtime overrides and fall back to environment defaults."""
    global _runtime_max_retries, _runtime_backoff_base, _runtime_backoff_jitter, _runtime_max_backoff
    _runtime_max_retries = None
    _runtime_backoff_base = None
    _runtime_backoff_jitter = None
    _runtime_max_backoff = None


def _parse_retry_after(raw_ra: Optional[str]) -> Optional[float]:
    if not raw_ra:
        return None
    try:
        return max(0.0, float(raw_ra))
    except (TypeError, ValueError):
        pass
    try:
        dt = email.utils.parsedate_to_datetime(raw_ra)
    except (TypeError, ValueError, IndexError):
        return None
    if dt is None:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return max(0.0, (dt - datetime.now(timezone.utc)).total_seconds())


def _header_number(headers: Dict[str, Any], key: str, cast):
    val = headers.get(key)
    if val is None:
        return None
    try:
        return cast(val)
    except (TypeError, ValueError):
        return None


def _parse_rate_headers(resp):
    headers = getattr(resp, 'headers', None) or {}
    ra = _parse_retry_after(headers.get('Retry-After'))
    rl_remaining = _header_number(headers, 'X-RateLimit-Remaining', int)
    rl_reset = _header_number(headers, 'X-RateLimit-Reset', float)
    return ra, rl_remaining, rl_reset


def _resolve_backoff_params(backoff_base_local: Optional[float], backoff_jitter_local: Optional[float], max_backoff_local: Optional[float]):
    if backoff_base_local is not None:
        base_local = float(backoff_base_local)
    elif _runtime_backoff_base is not None:
        base_local = float(_runtime_backoff_base)
    else:
        base_local = float(DEFAULT_BACKOFF_BASE)

    if backoff_jitter_local is not None:
        jitter_local = float(backoff_jitter_local)
    elif _runtime_backoff_jitter is not None:
        jitter_local = float(_runtime_backoff_jitter)
    elif DEFAULT_BACKOFF_JITTER is not None:
        jitter_local = float(DEFAULT_BACKOFF_JITTER)
    else:
        jitter_local = base_local

    if max_backoff_local is not None:
        max_backoff_resolved = float(max_backoff_local)
    elif _runtime_max_backoff is not None:
        max_backoff_resolved = float(_runtime_max_backoff)
    else:
        max_backoff_resolved = float(DEFAULT_MAX_BACKOFF)

    return base_local, jitter_local, max_backoff_resolved


def _resolve_max_retries(max_retries: Optional[int]) -> int:
    if max_retries is not None:
        return max(1, int(max_retries))
    if _runtime_max_retries is not None:
        return max(1, int(_runtime_max_retries))
    return max(1, int(DEFAULT_MAX_RETRIES))


def _parse_body(resp):
    """Return the decoded JSON body, or the raw text when the body is not JSON."""
    try:
        return resp.json()
    except ValueError:
        return getattr(resp, 'text', None)


def _should_retry_response(status_code: int, ra: Optional[float], rl_remaining: Optional[int]) -> bool:
    if status_code in (429, 503):
        return True
    if ra is not None:
        return True
    if status_code == 403 and rl_remaining is not None and rl_remaining <= 0:
        return True
    return False


def _compute_wait_seconds(ra: Optional[float], rl_reset: Optional[float], backoff: float, jitter: float, max_backoff: float) -> float:
    """Server-directed waits are capped at MAX_RATE_LIMIT_WAIT; plain backoff at max_backoff."""
    if ra is not None:
        return min(float(ra) + random.uniform(0, jitter), MAX_RATE_LIMIT_WAIT)
    if rl_reset:
        wait = max(0.0, float(rl_reset) - time.time())
        return min(wait + random.uniform(0, jitter), MAX_RATE_LIMIT_WAIT)
    return min(backoff + random.uniform(0, jitter), max_backoff)


def _attempt_request_once(url: str, headers: Dict[str, str], params: Dict[str, Any], timeout: float):
    try:
        resp = requests.get(url, headers=headers or {}, params=params or {}, timeout=timeout)
    except requests.RequestException as ex:
        return 'error', {'exception': str(ex) or type(ex).__name__}

    status = getattr(resp, 'status_code', 0)
    logger.debug("GET %s %s -> %s", url, params, status)

    if status == 204:
        return 'success', {'body': [], 'status': status}
    if 200 <= status < 300:
        return 'success', {'body': _parse_body(resp), 'status': status}

    ra, rl_remaining, rl_reset = _parse_rate_headers(resp)
    if _should_retry_response(status, ra, rl_remaining):
        return 'retry', {'status': status, 'ra': ra, 'rl_reset': rl_reset, 'text': getattr(resp, 'text', None)}

    return 'fail', {'body': _parse_body(resp), 'status': status}


def perform_request_with_retries(
    url: str,
    headers: Optional[Dict[str, str]] = None,
    params: Optional[Dict[str, Any]] = None,
    timeout: float = DEFAULT_TIMEOUT,
    max_retries: Optional[int] = None,
    backoff_base: Optional[float] = None,
    backoff_jitter: Optional[float] = None,
    max_backoff: Optional[float] = None,
) -> Dict[str, Any]:
    """GET url with a bounded number of attempts.

    Returns a dict {'response', 'status', 'timestamp'}. status is 0 when no HTTP response was received
    (connection error or timeout); 'response' then holds the error text. Non-retryable HTTP errors are
    returned immediately with their status and body.
    """
    base, jitter, max_backoff_resolved = _resolve_backoff_params(backoff_base, backoff_jitter, max_backoff)
    attempts = _resolve_max_retries(max_retries)
    backoff = base
    last_result: Dict[str, Any] = {'response': None, 'status': 0, 'timestamp': time.time()}

    for attempt in range(attempts):
        outcome, data = _attempt_request_once(url, headers or {}, params or {}, timeout)

        if outcome == 'success' or outcome == 'fail':
            return {'response': data.get('body'), 'status': data.get('status', 0), 'timestamp': time.time()}

        if outcome == 'error':
            last_result = {'response': data.get('exception'), 'status': 0, 'timestamp': time.time()}
            wait_seconds = min(backoff + random.uniform(0, jitter), max_backoff_resolved)
        else:
            last_result = {'response': data.get('text'), 'status': data.get('status', 0), 'timestamp': time.time()}
            wait_seconds = _compute_wait_seconds(data.get('ra'), data.get('rl_reset'), backoff, jitter, max_backoff_resolved)

        if attempt + 1 >= attempts:
            break
        logger.warning("GET %s failed (attempt %d/%d, status %s); retrying in %.1fs", url, attempt + 1, attempts, last_result['status'], wait_seconds)
        time.sleep(wait_seconds)
        backoff = min(backoff * 2, max_backoff_resolved)

    return last_result


__all__ = ["configure_retry", "reset_retry", "perform_request_with_retries", "DEFAULT_TIMEOUT"]
