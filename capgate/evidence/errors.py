"""Errors raised while loading recorded evidence."""

from __future__ import annotations

import typing as typ

if typ.TYPE_CHECKING:
    from pathlib import Path

    from .steps import Step


class FixtureFormatError(ValueError):
    """Raised when a fixture directory or file is structurally malformed.

    Data-quality problems inside a well-formed record (403s, odd bodies) are
    evidence, not errors; only files the loader cannot interpret raise.
    """

    @classmethod
    def missing_directory(cls, path: Path) -> FixtureFormatError:
        """Return an error for a fixture directory that does not exist."""
        return cls(f"fixture directory not found: {path}")

    @classmethod
    def invalid_json(cls, path: Path, detail: str) -> FixtureFormatError:
        """Return an error for a file that is not valid JSON."""
        return cls(f"fixture {path.name} is not valid JSON: {detail}")

    @classmethod
    def not_a_mapping(cls, path: Path) -> FixtureFormatError:
        """Return an error for a file whose top level is not a token mapping."""
        return cls(f"fixture {path.name} must map token names to probe results")

    @classmethod
    def invalid_entry(cls, path: Path, token: str, detail: str) -> FixtureFormatError:
        """Return an error for a token entry that is not a probe result."""
        return cls(f"fixture {path.name} entry {token!r} is malformed: {detail}")

    @classmethod
    def duplicate_step(
        cls, step: Step, first: Path, second: Path
    ) -> FixtureFormatError:
        """Return an error when two files claim the same probe step."""
        return cls(
            f"fixtures {first.name} and {second.name} both record step {step.value}"
        )
