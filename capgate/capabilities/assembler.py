"""Compose classifier, matrix, minimums and gaps into the final report."""

from __future__ import annotations

import typing as typ

import msgspec

from capgate.evidence import RepoMetadata, Step
from capgate.evidence.steps import HTTP_OK

from .gaps import report_gaps, usable_tokens
from .minimums import derive_capability_minimums
from .models import (
    BranchProtectionFacts,
    CapabilityContext,
    CapabilityGap,
    CapabilityReport,
    RepositoryFacts,
    Visibility,
)

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from capgate.evidence import AssessmentEvidence

    from .gaps import CapabilityPolicy
    from .models import TokenCapabilities


def _unset_if_none(value: typ.Any) -> typ.Any:  # noqa: ANN401
    return msgspec.UNSET if value is None else value


def _visibility(metadata: RepoMetadata) -> Visibility | msgspec.UnsetType:
    if metadata.private is None:
        return msgspec.UNSET
    return "private" if metadata.private else "public"


def repository_facts(evidence: AssessmentEvidence) -> RepositoryFacts:
    """Take repository-level settings from the first token that read them.

    Tokens are consulted in evidence order and the first successful
    repository metadata read wins outright. Settings that read omits stay
    undetermined.
    """
    for item in evidence.tokens:
        record = item.get(Step.REPO_METADATA)
        if record is None or not record.has_status(HTTP_OK):
            continue
        if not isinstance(record.payload, RepoMetadata):
            continue
        metadata = record.payload
        return RepositoryFacts(
            default_branch=_unset_if_none(metadata.default_branch),
            visibility=_visibility(metadata),
            auto_merge_enabled=_unset_if_none(metadata.allow_auto_merge),
            allow_squash_merge=_unset_if_none(metadata.allow_squash_merge),
        )
    return RepositoryFacts()


def build_context(
    protection: BranchProtectionFacts,
    repository: RepositoryFacts,
    usable: cabc.Sequence[str],
) -> CapabilityContext:
    """Merge protection and repository facts into the report context."""
    return CapabilityContext(
        branch_protection=protection.classification,
        default_branch=repository.default_branch,
        visibility=repository.visibility,
        usable_tokens=tuple(usable),
        auto_merge_enabled=repository.auto_merge_enabled,
        allow_squash_merge=repository.allow_squash_merge,
        required_status_checks_enabled=protection.required_status_checks_enabled,
        required_status_check_contexts=protection.required_status_check_contexts,
        required_approvals=protection.required_approvals,
        pr_required=protection.pr_required,
    )


def assemble_report(
    *,
    protection: BranchProtectionFacts,
    repository: RepositoryFacts,
    matrix: cabc.Mapping[str, TokenCapabilities],
    policy: CapabilityPolicy,
) -> CapabilityReport:
    """Assemble the capability report from the engine's intermediate results.

    Parameters
    ----------
    protection
        Reconciled branch protection facts.
    repository
        Repository-level facts.
    matrix
        Per-token capabilities in evidence order.
    policy
        Capabilities a token needs to count as usable.

    Returns
    -------
    CapabilityReport
        The report. ``release-basic`` is only derivable when squash merging
        is not explicitly disabled.

    """
    usable = usable_tokens(matrix, policy)
    return CapabilityReport(
        gaps=report_gaps(usable, repository),
        context=build_context(protection, repository, usable),
        token_matrix=dict(matrix),
        capability_minimum_tokens=derive_capability_minimums(
            matrix,
            allow_squash_merge_enabled=not repository.squash_merge_disabled,
        ),
    )


def short_circuit_report(gap: CapabilityGap) -> CapabilityReport:
    """Return the report for an assessment that could not start.

    The context is undetermined, the matrix is empty and no capability
    minimums are reported, since no token was ever evaluated.
    """
    return CapabilityReport(gaps=(gap,), context=CapabilityContext.undetermined())
