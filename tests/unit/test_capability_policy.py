"""Unit tests for loading capability policy files."""

from __future__ import annotations

import typing as typ

import pytest

from capgate.capabilities import (
    DEFAULT_POLICY,
    CapabilityPolicy,
    PolicyValidationError,
    load_policy,
)

if typ.TYPE_CHECKING:
    from pathlib import Path


def _write(tmp_path: Path, text: str) -> Path:
    path = tmp_path / "policy.yaml"
    path.write_text(text, encoding="utf-8")
    return path


def test_load_policy_reads_required_flags(tmp_path: Path) -> None:
    """Flags under ``required`` override the defaults."""
    path = _write(tmp_path, "required:\n  can_list_branches: false\n")

    policy = load_policy(path)

    assert policy == CapabilityPolicy(can_list_branches=False)


def test_empty_policy_file_uses_defaults(tmp_path: Path) -> None:
    """An empty file is the default policy."""
    assert load_policy(_write(tmp_path, "")) == DEFAULT_POLICY


def test_policy_without_required_block_uses_defaults(tmp_path: Path) -> None:
    """A document without a ``required`` block keeps every requirement."""
    assert load_policy(_write(tmp_path, "{}\n")) == DEFAULT_POLICY


@pytest.mark.parametrize(
    ("text", "fragment"),
    [
        ("required:\n  can_psuh: false\n", "schema validation failed"),
        ("required:\n  can_push: maybe\n", "schema validation failed"),
        ("extra: true\n", "schema validation failed"),
        ("required: [\n", "failed to parse YAML"),
        ("required:\n  can_push: true\n  can_push: false\n", "failed to parse YAML"),
    ],
)
def test_invalid_policies_raise(tmp_path: Path, text: str, fragment: str) -> None:
    """Malformed policy files raise with the collected issues."""
    with pytest.raises(PolicyValidationError) as excinfo:
        load_policy(_write(tmp_path, text))

    assert fragment in str(excinfo.value)
    assert len(excinfo.value.issues) == 1


def test_missing_policy_file_raises(tmp_path: Path) -> None:
    """An unreadable file is reported as a policy error."""
    with pytest.raises(PolicyValidationError, match="failed to parse YAML"):
        load_policy(tmp_path / "absent.yaml")
