"""Derive the least-privileged tokens able to exercise each capability."""

from __future__ import annotations

import enum
import typing as typ

from .models import Capability

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from .models import TokenCapabilities


class PrivilegeRank(enum.IntEnum):
    """Privilege ordering used to prefer the weakest qualifying token."""

    STANDARD = 0
    ADMIN = 1


def privilege_rank(capabilities: TokenCapabilities) -> PrivilegeRank:
    """Return the rank of a token; lower ranks are preferred."""
    return PrivilegeRank.ADMIN if capabilities.is_admin else PrivilegeRank.STANDARD


def least_privileged_first(
    tokens: cabc.Iterable[TokenCapabilities],
) -> list[TokenCapabilities]:
    """Order tokens non-admin before admin.

    The sort is stable, so tokens of equal rank keep their evidence order.
    """
    return sorted(tokens, key=privilege_rank)


def _can_read_protection(token: TokenCapabilities) -> bool:
    # Admin repository readers can always read protection settings.
    return token.can_read_branch_protection or (token.repo_read and token.is_admin)


def _capability_predicates(
    *, allow_squash_merge_enabled: bool
) -> dict[Capability, cabc.Callable[[TokenCapabilities], bool]]:
    def release_basic(token: TokenCapabilities) -> bool:
        return (
            allow_squash_merge_enabled
            and token.repo_read
            and token.can_list_branches
            and token.can_push
        )

    return {
        Capability.REPO_READ: lambda token: token.repo_read,
        Capability.BRANCH_LIST: lambda token: token.can_list_branches,
        Capability.PUSH: lambda token: token.can_push,
        Capability.BRANCH_PROTECTION_READ: _can_read_protection,
        Capability.RELEASE_BASIC: release_basic,
    }


def derive_capability_minimums(
    matrix: cabc.Mapping[str, TokenCapabilities],
    *,
    allow_squash_merge_enabled: bool,
) -> dict[str, tuple[str, ...]]:
    """Map each capability to the tokens satisfying it, least privileged first.

    Parameters
    ----------
    matrix
        Token capability records keyed by token name, in evidence order.
    allow_squash_merge_enabled
        Whether squash merging is available on the repository. When False,
        ``release-basic`` cannot be satisfied by any token.

    Returns
    -------
    dict[str, tuple[str, ...]]
        Capability name to qualifying token names. Capabilities no token
        satisfies are left out entirely rather than mapped to an empty list.

    """
    ordered = least_privileged_first(matrix.values())
    predicates = _capability_predicates(
        allow_squash_merge_enabled=allow_squash_merge_enabled
    )
    minimums: dict[str, tuple[str, ...]] = {}
    for capability, predicate in predicates.items():
        chosen = tuple(token.token for token in ordered if predicate(token))
        if chosen:
            minimums[capability.value] = chosen
    return minimums
