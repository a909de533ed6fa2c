"""Live evidence collection against the GitHub REST API."""

from __future__ import annotations

from .client import (
    DEFAULT_BRANCH_FALLBACK,
    SECOND_ROUND_STEPS,
    GitHubProbeClient,
    GitHubProbeConfig,
    LiveCollection,
    collect_live_table,
    discover_default_branch,
)
from .errors import GitHubConfigError

__all__ = [
    "DEFAULT_BRANCH_FALLBACK",
    "SECOND_ROUND_STEPS",
    "GitHubConfigError",
    "GitHubProbeClient",
    "GitHubProbeConfig",
    "LiveCollection",
    "collect_live_table",
    "discover_default_branch",
]
