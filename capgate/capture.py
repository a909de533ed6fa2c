"""Record live probe results as a fixture directory.

The written directory is exactly what :func:`capgate.evidence.load_fixture_table`
reads, so a live repository can be captured once and replayed offline.
"""

from __future__ import annotations

import typing as typ
from pathlib import Path

from capgate.evidence import write_fixture_table
from capgate.github import (
    GitHubConfigError,
    GitHubProbeClient,
    GitHubProbeConfig,
    collect_live_table,
)
from capgate.logging import get_logger, log_info

if typ.TYPE_CHECKING:
    import httpx

    from capgate.config import AssessmentConfig

logger = get_logger(__name__)


async def capture_fixtures(
    config: AssessmentConfig,
    output: Path | str,
    *,
    http_client: httpx.AsyncClient | None = None,
) -> list[Path]:
    """Probe the configured repository and write one fixture file per step.

    Parameters
    ----------
    config
        Target repository, credentials and optional branch override.
    output
        Directory to write into. Created when missing.
    http_client
        Optional pre-configured HTTP client; it is left open afterwards.

    Returns
    -------
    list[Path]
        Files written, in step order.

    Raises
    ------
    GitHubConfigError
        If no repository or no credential is configured. Capturing has no
        report to carry a gap, so configuration absence is an error here.

    """
    if config.repository is None:
        raise GitHubConfigError.missing_repository()
    if not config.credentials:
        raise GitHubConfigError.missing_credentials()

    client = GitHubProbeClient(
        GitHubProbeConfig(api_url=config.api_url), http_client=http_client
    )
    try:
        collection = await collect_live_table(
            client,
            config.repository,
            config.credentials,
            branch=config.branch,
            skipped_tokens=config.skipped_tokens,
        )
    finally:
        await client.aclose()

    written = write_fixture_table(collection.table, Path(output))
    log_info(
        logger,
        "[capture.completed] repo=%s branch=%s files=%d directory=%s",
        config.repository.slug,
        collection.branch,
        len(written),
        output,
    )
    return written
