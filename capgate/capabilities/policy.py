"""YAML loader for required-capability policy files.

A policy file relaxes or tightens which capabilities a token needs before it
counts as usable::

    required:
      repo_read: true
      can_push: true
      can_list_branches: false
"""

from __future__ import annotations

from pathlib import Path

import msgspec
from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from .gaps import DEFAULT_POLICY, CapabilityPolicy

YAML_VERSION = (1, 2)


class PolicyValidationError(ValueError):
    """Raised when a policy file cannot be parsed or fails validation."""

    def __init__(self, issues: list[str]) -> None:
        """Capture validation issues whilst preserving the aggregated message."""
        message = "\n".join(issues)
        super().__init__(message)
        self.issues = issues


class _PolicyDocument(msgspec.Struct, kw_only=True, forbid_unknown_fields=True):
    required: CapabilityPolicy = msgspec.field(default_factory=CapabilityPolicy)


def load_policy(path: Path | str) -> CapabilityPolicy:
    """Parse a YAML policy file using a YAML 1.2 compliant loader.

    An empty file yields the default policy.

    Raises
    ------
    PolicyValidationError
        If the file cannot be read or parsed, or does not match the policy
        schema.

    """
    yaml = _yaml()
    path_obj = Path(path)

    try:
        loaded = yaml.load(path_obj.read_text(encoding="utf-8"))
    except (OSError, YAMLError) as exc:
        raise PolicyValidationError([f"failed to parse YAML: {exc}"]) from exc

    if loaded is None:
        return DEFAULT_POLICY

    try:
        document = msgspec.convert(loaded, type=_PolicyDocument)
    except msgspec.ValidationError as exc:
        raise PolicyValidationError([f"schema validation failed: {exc}"]) from exc

    return document.required


def _yaml() -> YAML:
    yaml = YAML(typ="safe")
    yaml.version = YAML_VERSION
    yaml.allow_duplicate_keys = False
    return yaml
