"""Reduce each token's evidence to a fixed capability record.

Every record is computed from one token's evidence alone. A gap for one token
is never filled from another token's responses.
"""

from __future__ import annotations

import typing as typ

from capgate.evidence import BranchList, RepoMetadata, RepoPermissions, Step
from capgate.evidence.steps import HTTP_NOT_FOUND, HTTP_OK, HTTP_UNAUTHORIZED

from .models import TokenCapabilities

if typ.TYPE_CHECKING:
    from capgate.evidence import AssessmentEvidence, TokenEvidenceSet

# Probes whose 401 means the credential itself was rejected.
IDENTITY_STEPS: tuple[Step, ...] = (Step.REPO_METADATA, Step.CLASSIC_PROTECTION)


def _permissions(evidence: TokenEvidenceSet) -> RepoPermissions:
    record = evidence.get(Step.REPO_METADATA)
    if record is None or not isinstance(record.payload, RepoMetadata):
        return RepoPermissions()
    return record.payload.permissions or RepoPermissions()


def _is_valid(evidence: TokenEvidenceSet) -> bool:
    observed = [
        record
        for step in IDENTITY_STEPS
        if (record := evidence.get(step)) is not None
    ]
    if not observed:
        return False
    return not any(record.has_status(HTTP_UNAUTHORIZED) for record in observed)


def _can_list_branches(evidence: TokenEvidenceSet) -> bool:
    record = evidence.get(Step.BRANCH_LIST)
    return (
        record is not None
        and record.has_status(HTTP_OK)
        and isinstance(record.payload, BranchList)
    )


def build_token_capabilities(evidence: TokenEvidenceSet) -> TokenCapabilities:
    """Compute the capability record for one token.

    Parameters
    ----------
    evidence
        The token's own probe results.

    Returns
    -------
    TokenCapabilities
        ``can_read_branch_protection`` holds for a 200 or a 404 on the
        classic read, as both are answers only a permitted caller receives.
        ``is_admin`` and ``can_push`` default to False when repository
        metadata carries no permission block.

    """
    permissions = _permissions(evidence)
    return TokenCapabilities(
        token=evidence.token,
        valid=_is_valid(evidence),
        repo_read=evidence.status(Step.REPO_METADATA) == HTTP_OK,
        can_list_branches=_can_list_branches(evidence),
        can_read_branch_protection=evidence.status(Step.CLASSIC_PROTECTION)
        in (HTTP_OK, HTTP_NOT_FOUND),
        is_admin=permissions.admin,
        can_push=permissions.push,
    )


def build_token_matrix(evidence: AssessmentEvidence) -> dict[str, TokenCapabilities]:
    """Build the capability matrix keyed by token name, in evidence order."""
    return {item.token: build_token_capabilities(item) for item in evidence.tokens}
