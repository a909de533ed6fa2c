"""Capability report structures.

Tri-state facts use ``msgspec.UNSET`` for "not determinable from the
evidence". UNSET fields are left out of the encoded report, so consumers can
tell an undetermined fact (key absent) from a conclusive ``false``.
"""

from __future__ import annotations

import enum
import typing as typ

import msgspec

Visibility = typ.Literal["public", "private"]


class ProtectionClassification(enum.StrEnum):
    """Branch protection regime detected on the target branch."""

    NONE = "none"
    CLASSIC = "classic"
    RULES = "rules"
    CLASSIC_AND_RULES = "classic+rules"
    UNKNOWN = "unknown"


class Capability(enum.StrEnum):
    """Named capabilities for which minimal tokens are derived."""

    REPO_READ = "repo-read"
    BRANCH_LIST = "branch-list"
    PUSH = "push"
    BRANCH_PROTECTION_READ = "branch-protection-read"
    RELEASE_BASIC = "release-basic"


class BranchProtectionFacts(msgspec.Struct, kw_only=True, frozen=True):
    """Reconciled branch protection facts.

    Attributes
    ----------
    classification
        Detected protection regime.
    required_status_checks_enabled
        Whether status checks must pass before merging.
    required_status_check_contexts
        Names of the required status checks.
    required_approvals
        Number of approving reviews required.
    pr_required
        Whether changes must arrive through a pull request.

    """

    classification: ProtectionClassification
    required_status_checks_enabled: bool | msgspec.UnsetType = msgspec.UNSET
    required_status_check_contexts: tuple[str, ...] | msgspec.UnsetType = msgspec.UNSET
    required_approvals: int | msgspec.UnsetType = msgspec.UNSET
    pr_required: bool | msgspec.UnsetType = msgspec.UNSET


class RepositoryFacts(msgspec.Struct, kw_only=True, frozen=True):
    """Repository-level settings taken from repository metadata."""

    default_branch: str | msgspec.UnsetType = msgspec.UNSET
    visibility: Visibility | msgspec.UnsetType = msgspec.UNSET
    auto_merge_enabled: bool | msgspec.UnsetType = msgspec.UNSET
    allow_squash_merge: bool | msgspec.UnsetType = msgspec.UNSET

    @property
    def squash_merge_disabled(self) -> bool:
        """Return True only when squash merging is explicitly switched off."""
        return self.allow_squash_merge is False


class TokenCapabilities(msgspec.Struct, kw_only=True, frozen=True, rename="camel"):
    """Capabilities of one token, derived from its own evidence only."""

    token: str
    valid: bool
    repo_read: bool
    can_list_branches: bool
    can_read_branch_protection: bool
    is_admin: bool
    can_push: bool


class CapabilityGap(msgspec.Struct, kw_only=True, frozen=True):
    """A deficiency blocking safe automation, with a remediation hint."""

    capability: str
    reason: str
    recommendation: str


class CapabilityContext(msgspec.Struct, kw_only=True, frozen=True, rename="camel"):
    """Repository and protection facts reported alongside the gaps."""

    branch_protection: ProtectionClassification
    default_branch: str | msgspec.UnsetType = msgspec.UNSET
    visibility: Visibility | msgspec.UnsetType = msgspec.UNSET
    usable_tokens: tuple[str, ...] = ()
    auto_merge_enabled: bool | msgspec.UnsetType = msgspec.UNSET
    allow_squash_merge: bool | msgspec.UnsetType = msgspec.UNSET
    required_status_checks_enabled: bool | msgspec.UnsetType = msgspec.UNSET
    required_status_check_contexts: tuple[str, ...] | msgspec.UnsetType = msgspec.UNSET
    required_approvals: int | msgspec.UnsetType = msgspec.UNSET
    pr_required: bool | msgspec.UnsetType = msgspec.UNSET

    @classmethod
    def undetermined(cls) -> CapabilityContext:
        """Return the context used when no assessment could run."""
        return cls(branch_protection=ProtectionClassification.UNKNOWN)


class CapabilityReport(msgspec.Struct, kw_only=True, frozen=True, rename="camel"):
    """Consolidated capability report consumed by release automation.

    Attributes
    ----------
    gaps
        Deficiencies blocking automation, in evaluation order.
    context
        Repository and branch protection facts.
    token_matrix
        Per-token capabilities keyed by token name.
    capability_minimum_tokens
        Tokens satisfying each capability, least privileged first. A
        capability no token satisfies has no key. The whole mapping is UNSET
        when the assessment short-circuited before evaluating tokens.

    """

    gaps: tuple[CapabilityGap, ...]
    context: CapabilityContext
    token_matrix: dict[str, TokenCapabilities] = msgspec.field(default_factory=dict)
    capability_minimum_tokens: dict[str, tuple[str, ...]] | msgspec.UnsetType = (
        msgspec.UNSET
    )

    @property
    def gap_names(self) -> tuple[str, ...]:
        """Return the capability names of all gaps."""
        return tuple(gap.capability for gap in self.gaps)


def encode_report(report: CapabilityReport) -> bytes:
    """Encode a report as JSON with camelCase keys."""
    return msgspec.json.encode(report)

