"""Compare assessed capabilities against the required policy."""

from __future__ import annotations

import typing as typ

import msgspec

from .models import CapabilityGap

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from .models import RepositoryFacts, TokenCapabilities

USABLE_TOKEN_GAP = "usable-token"
ALLOW_SQUASH_MERGE_GAP = "allow-squash-merge"
LIVE_MODE_GAP = "live-mode"


class CapabilityPolicy(
    msgspec.Struct, kw_only=True, frozen=True, forbid_unknown_fields=True
):
    """Capabilities a token must hold to be usable for automation.

    A usable token must always be valid; the remaining flags can be relaxed
    per repository.
    """

    repo_read: bool = True
    can_push: bool = True
    can_list_branches: bool = True

    def is_satisfied_by(self, token: TokenCapabilities) -> bool:
        """Return True when ``token`` holds every required capability."""
        return (
            token.valid
            and (not self.repo_read or token.repo_read)
            and (not self.can_push or token.can_push)
            and (not self.can_list_branches or token.can_list_branches)
        )


DEFAULT_POLICY = CapabilityPolicy()


def usable_tokens(
    matrix: cabc.Mapping[str, TokenCapabilities], policy: CapabilityPolicy
) -> tuple[str, ...]:
    """Return tokens meeting ``policy``, in evidence order."""
    return tuple(
        name for name, token in matrix.items() if policy.is_satisfied_by(token)
    )


def usable_token_gap() -> CapabilityGap:
    """Return the gap raised when no token meets the required capabilities."""
    return CapabilityGap(
        capability=USABLE_TOKEN_GAP,
        reason="No token satisfies required repo access + push rights",
        recommendation=(
            "Provide a PAT with repo:status and workflow/write scopes or adjust "
            "required capabilities"
        ),
    )


def allow_squash_merge_gap() -> CapabilityGap:
    """Return the gap raised when squash merging is switched off."""
    return CapabilityGap(
        capability=ALLOW_SQUASH_MERGE_GAP,
        reason='Repository does not have "Allow squash merging" enabled',
        recommendation=(
            'Enable "Allow squash merging" in Settings > General > '
            "Merge button options."
        ),
    )


def missing_repository_gap() -> CapabilityGap:
    """Return the gap reported when no target repository is configured."""
    return CapabilityGap(
        capability=LIVE_MODE_GAP,
        reason="Missing SAR_REPO env var",
        recommendation="Set SAR_REPO=owner/repo to enable live probing.",
    )


def missing_credentials_gap() -> CapabilityGap:
    """Return the gap reported when no credential is configured."""
    return CapabilityGap(
        capability=USABLE_TOKEN_GAP,
        reason="No token env vars detected",
        recommendation="Export at least GH_TOKEN or a PAT_* variable before running.",
    )


def report_gaps(
    usable: cabc.Sequence[str], repository: RepositoryFacts
) -> tuple[CapabilityGap, ...]:
    """Return capability gaps in their fixed evaluation order.

    Parameters
    ----------
    usable
        Tokens satisfying the policy.
    repository
        Repository-level facts. Only an explicit ``False`` squash-merge
        setting produces a gap; an undetermined setting does not.

    Notes
    -----
    Ambiguous branch protection is never reported as a gap.

    """
    gaps: list[CapabilityGap] = []
    if not usable:
        gaps.append(usable_token_gap())
    if repository.squash_merge_disabled:
        gaps.append(allow_squash_merge_gap())
    return tuple(gaps)
