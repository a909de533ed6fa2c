"""Assessment entry points for recorded and live evidence.

All entry points funnel into :func:`assess_evidence`, so a report has the same
shape whichever source produced the evidence.
"""

from __future__ import annotations

import typing as typ

from capgate.evidence import AssessmentEvidence, load_fixture_evidence
from capgate.github import GitHubProbeClient, GitHubProbeConfig, collect_live_table
from capgate.logging import get_logger, log_info

from .assembler import assemble_report, repository_facts, short_circuit_report
from .gaps import DEFAULT_POLICY, missing_credentials_gap, missing_repository_gap
from .matrix import build_token_matrix
from .protection import classify_evidence

if typ.TYPE_CHECKING:
    from pathlib import Path

    import httpx

    from capgate.config import AssessmentConfig

    from .gaps import CapabilityPolicy
    from .models import CapabilityReport

logger = get_logger(__name__)


def assess_evidence(
    evidence: AssessmentEvidence,
    *,
    policy: CapabilityPolicy = DEFAULT_POLICY,
) -> CapabilityReport:
    """Classify protection, build the matrix and assemble the report.

    The function is pure: the same evidence always yields an identical
    report.
    """
    log_info(
        logger,
        "[assessment.started] tokens=%d",
        len(evidence.tokens),
    )
    protection = classify_evidence(evidence)
    report = assemble_report(
        protection=protection,
        repository=repository_facts(evidence),
        matrix=build_token_matrix(evidence),
        policy=policy,
    )
    log_info(
        logger,
        "[assessment.completed] classification=%s tokens=%d gaps=%d",
        report.context.branch_protection,
        len(report.token_matrix),
        len(report.gaps),
    )
    return report


def assess_fixture_dir(
    directory: Path | str,
    *,
    policy: CapabilityPolicy = DEFAULT_POLICY,
) -> CapabilityReport:
    """Assess a recorded fixture directory.

    Raises
    ------
    FixtureFormatError
        If the directory or one of its files is malformed.

    """
    return assess_evidence(load_fixture_evidence(directory), policy=policy)


async def assess_live(
    config: AssessmentConfig,
    *,
    policy: CapabilityPolicy = DEFAULT_POLICY,
    http_client: httpx.AsyncClient | None = None,
) -> CapabilityReport:
    """Probe GitHub live and assess the collected evidence.

    Parameters
    ----------
    config
        Target repository, credentials and optional branch override.
    policy
        Capabilities a token needs to count as usable.
    http_client
        Optional pre-configured HTTP client; it is left open afterwards.

    Returns
    -------
    CapabilityReport
        The assessment. A missing repository or missing credentials yield a
        report holding a single gap instead of raising.

    """
    if config.repository is None:
        log_info(logger, "[assessment.skipped] reason=missing_repository")
        return short_circuit_report(missing_repository_gap())
    if not config.credentials:
        log_info(logger, "[assessment.skipped] reason=missing_credentials")
        return short_circuit_report(missing_credentials_gap())

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

    log_info(
        logger,
        "[assessment.collected] repo=%s branch=%s",
        config.repository.slug,
        collection.branch,
    )
    evidence = AssessmentEvidence.from_table(collection.table)
    return assess_evidence(evidence, policy=policy)
