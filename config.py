"""
Run configuration for the leaderboard.

Values are resolved once at startup with precedence: CLI flag > YAML config file > environment > default,
and are not changed afterwards. Recognized environment variables:
- LEADERBOARD_OWNER: account to scan
- GITHUB_TOKEN: optional token; raises the request quota
"""
import os
from typing import Any, Dict, Optional

import yaml

from ingest.collector import ON_ERROR_POLICIES, ON_ERROR_SKIP
from ingest.github import DEFAULT_BASE_URL, OWNER_TYPES
from report.renderer import FORMATS, EXTENSIONS
from report.writer import DEFAULT_OUT_FILE, WRITE_MODES, WRITE_OVERWRITE, WRITE_APPEND
from storage.retry import DEFAULT_TIMEOUT

DEFAULTS: Dict[str, Any] = {
    'owner': None,
    'token': None,
    'owner_type': 'org',
    'base_url': DEFAULT_BASE_URL,
    'out_file': DEFAULT_OUT_FILE,
    'output': 'csv',
    'write_mode': WRITE_OVERWRITE,
    'on_repo_error': ON_ERROR_SKIP,
    'max_pages': None,
    'timeout': DEFAULT_TIMEOUT,
    'cache_path': None,
    'cache_max_age': None,
}

CHOICES = {
    'owner_type': OWNER_TYPES,
    'output': FORMATS,
    'write_mode': WRITE_MODES,
    'on_repo_error': ON_ERROR_POLICIES,
}

NUMERIC_KEYS = {'max_pages': int, 'timeout': float, 'cache_max_age': float}

ENV_VARS = {
    'owner': 'LEADERBOARD_OWNER',
    'token': 'GITHUB_TOKEN',
}


class LeaderboardConfig:
    """
    Explicit configuration passed into the pipeline.
    owner is required; token is optional and only raises the request quota.
    """
    __slots__ = tuple(DEFAULTS.keys())

    def __init__(self, **values):
        unknown = set(values) - set(DEFAULTS)
        if unknown:
            raise ValueError(f"Unknown configuration keys: {', '.join(sorted(unknown))}")
        for key, default in DEFAULTS.items():
            object.__setattr__(self, key, values.get(key, default))

    def __setattr__(self, key, value):
        raise AttributeError("LeaderboardConfig is read-only")

    def to_dict(self) -> Dict[str, Any]:
        return {k: getattr(self, k) for k in DEFAULTS}

    def redacted(self) -> Dict[str, Any]:
        """to_dict() with the token masked, for logging."""
        d = self.to_dict()
        if d.get('token'):
            d['token'] = '***'
        return d

    def validate(self) -> "LeaderboardConfig":
        if not self.owner or not str(self.owner).strip():
            raise ValueError("An owner (organization or user handle) is required")
        for key, allowed in CHOICES.items():
            value = getattr(self, key)
            if value not in allowed:
                raise ValueError(f"{key} must be one of {', '.join(allowed)}; got '{value}'")
        if self.write_mode == WRITE_APPEND and self.output != 'csv':
            raise ValueError("append write_mode is only supported for csv output")
        if self.max_pages is not None and int(self.max_pages) < 1:
            raise ValueError("max_pages must be a positive integer")
        if float(self.timeout) <= 0:
            raise ValueError("timeout must be positive")
        return self


def load_config_file(path: str) -> Dict[str, Any]:
    """Read a YAML mapping of configuration values. Keys outside DEFAULTS are rejected; null values are dropped."""
    with open(path, 'r', encoding='utf-8') as f:
        try:
            doc = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ValueError(f"Config file {path} is not valid YAML: {exc}") from exc
    if not isinstance(doc, dict):
        raise ValueError(f"Config file {path} must contain a mapping, got {type(doc).__name__}")
    unknown = set(doc) - set(DEFAULTS)
    if unknown:
        raise ValueError(f"Unknown keys in {path}: {', '.join(sorted(unknown))}")
    return {k: v for k, v in doc.items() if v is not None}


def _from_environment(environ) -> Dict[str, Any]:
    values = {}
    for key, var in ENV_VARS.items():
        val = environ.get(var)
        if val:
            values[key] = val
    return values


def _coerce_numbers(values: Dict[str, Any]) -> None:
    for key, kind in NUMERIC_KEYS.items():
        if values.get(key) is None:
            continue
        try:
            values[key] = kind(values[key])
        except (TypeError, ValueError):
            raise ValueError(f"{key} must be a number; got {values[key]!r}") from None


def build_config(overrides: Optional[Dict[str, Any]] = None, config_file: Optional[str] = None, environ=None) -> LeaderboardConfig:
    """Merge defaults, environment, an optional YAML file and explicit overrides, then validate.
    Overrides whose value is None are ignored so unset CLI flags fall through.
    """
    values: Dict[str, Any] = dict(DEFAULTS)
    values.update(_from_environment(os.environ if environ is None else environ))
    if config_file:
        values.update(load_config_file(config_file))
    for key, val in (overrides or {}).items():
        if val is not None:
            values[key] = val
    _coerce_numbers(values)
    # default report name follows the chosen format
    if values['out_file'] == DEFAULT_OUT_FILE and values['output'] in EXTENSIONS:
        values['out_file'] = os.path.splitext(DEFAULT_OUT_FILE)[0] + '.' + EXTENSIONS[values['output']]
    return LeaderboardConfig(**values).validate()
