"""Unit tests for least-privilege capability minimums."""

from __future__ import annotations

from capgate.capabilities import (
    PrivilegeRank,
    TokenCapabilities,
    derive_capability_minimums,
    least_privileged_first,
    privilege_rank,
)


def _caps(
    token: str,
    *,
    admin: bool = False,
    repo_read: bool = True,
    can_list_branches: bool = True,
    can_push: bool = True,
    can_read_branch_protection: bool = False,
) -> TokenCapabilities:
    return TokenCapabilities(
        token=token,
        valid=True,
        repo_read=repo_read,
        can_list_branches=can_list_branches,
        can_read_branch_protection=can_read_branch_protection,
        is_admin=admin,
        can_push=can_push,
    )


def _matrix(*tokens: TokenCapabilities) -> dict[str, TokenCapabilities]:
    return {token.token: token for token in tokens}


def test_privilege_rank_orders_admin_last() -> None:
    """Admins rank above standard tokens."""
    assert privilege_rank(_caps("a")) is PrivilegeRank.STANDARD
    assert privilege_rank(_caps("b", admin=True)) is PrivilegeRank.ADMIN
    assert PrivilegeRank.STANDARD < PrivilegeRank.ADMIN


def test_least_privileged_first_is_stable() -> None:
    """Equal ranks keep their evidence order."""
    ordered = least_privileged_first(
        [
            _caps("ADMIN_1", admin=True),
            _caps("MIN_1"),
            _caps("ADMIN_2", admin=True),
            _caps("MIN_2"),
        ]
    )

    assert [token.token for token in ordered] == [
        "MIN_1",
        "MIN_2",
        "ADMIN_1",
        "ADMIN_2",
    ]


def test_non_admin_tokens_listed_first() -> None:
    """Qualifying standard tokens precede qualifying admin tokens."""
    minimums = derive_capability_minimums(
        _matrix(_caps("PAT_ADMIN", admin=True), _caps("PAT_MIN")),
        allow_squash_merge_enabled=True,
    )

    assert minimums["push"] == ("PAT_MIN", "PAT_ADMIN")
    assert minimums["repo-read"] == ("PAT_MIN", "PAT_ADMIN")
    assert minimums["release-basic"] == ("PAT_MIN", "PAT_ADMIN")


def test_unsatisfied_capabilities_are_absent() -> None:
    """A capability no token satisfies has no key at all."""
    minimums = derive_capability_minimums(
        _matrix(_caps("PAT_RO", can_push=False, can_list_branches=False)),
        allow_squash_merge_enabled=True,
    )

    assert "push" not in minimums
    assert "branch-list" not in minimums
    assert "release-basic" not in minimums
    assert minimums == {"repo-read": ("PAT_RO",)}


def test_release_basic_absent_without_squash_merge() -> None:
    """Disabled squash merging removes release-basic regardless of tokens."""
    minimums = derive_capability_minimums(
        _matrix(_caps("PAT_MIN"), _caps("PAT_ADMIN", admin=True)),
        allow_squash_merge_enabled=False,
    )

    assert "release-basic" not in minimums
    assert minimums["push"] == ("PAT_MIN", "PAT_ADMIN")


def test_branch_protection_read_includes_admin_readers() -> None:
    """Admin repository readers can read protection even without evidence."""
    minimums = derive_capability_minimums(
        _matrix(
            _caps("PAT_ADMIN", admin=True),
            _caps("PAT_READER", can_read_branch_protection=True),
            _caps("PAT_MIN"),
        ),
        allow_squash_merge_enabled=True,
    )

    assert minimums["branch-protection-read"] == ("PAT_READER", "PAT_ADMIN")


def test_empty_matrix_yields_empty_minimums() -> None:
    """With no tokens every capability is absent."""
    assert derive_capability_minimums({}, allow_squash_merge_enabled=True) == {}
