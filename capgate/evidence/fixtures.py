"""Recorded evidence source backed by a directory of per-step JSON files.

A fixture directory holds one ``*.json`` file per probe step. The step is
recognised from a substring of the filename (``step2_classic_protection.json``
records the classic protection read), so files can be renamed or reordered
freely. Each file maps a token name to the probe result for that token::

    {
      "PAT_ADMIN": {"endpoint": "...", "status_code": 200, "ok": true, "data": {}},
      "PAT_MIN": {"skipped": true},
      "PAT_BAD": {"error": "getaddrinfo ENOTFOUND"}
    }

``{"error": ...}`` entries are captures of transport failures and load as the
same ``status_code=0`` placeholder the live source produces.
"""

from __future__ import annotations

import typing as typ
from pathlib import Path

import msgspec

from capgate.logging import get_logger, log_warning

from .errors import FixtureFormatError
from .models import (
    SKIPPED,
    AssessmentEvidence,
    RawEntry,
    RawEvidence,
    RawEvidenceTable,
)
from .steps import Step, step_for_filename

logger = get_logger(__name__)


def _decode_entry(path: Path, token: str, value: object) -> RawEntry:
    if not isinstance(value, dict):
        raise FixtureFormatError.invalid_entry(path, token, "expected an object")
    if value.get("skipped"):
        return SKIPPED
    error = value.get("error")
    if error is not None and "status_code" not in value:
        return RawEvidence.transport_failure(value.get("endpoint") or "", str(error))
    try:
        return msgspec.convert(value, type=RawEvidence)
    except msgspec.ValidationError as exc:
        raise FixtureFormatError.invalid_entry(path, token, str(exc)) from exc


def load_fixture_file(path: Path) -> dict[str, RawEntry]:
    """Load one per-step fixture file into token-keyed raw entries.

    Raises
    ------
    FixtureFormatError
        If the file is not JSON, is not a mapping, or holds an entry that is
        not a probe result.

    """
    try:
        loaded = msgspec.json.decode(path.read_bytes())
    except msgspec.DecodeError as exc:
        raise FixtureFormatError.invalid_json(path, str(exc)) from exc

    if not isinstance(loaded, dict):
        raise FixtureFormatError.not_a_mapping(path)

    return {
        str(token): _decode_entry(path, str(token), value)
        for token, value in loaded.items()
    }


def load_fixture_table(directory: Path | str) -> RawEvidenceTable:
    """Read every recognised step file in ``directory``.

    Files whose names match no step are ignored with a warning. Two files
    matching the same step are rejected rather than silently merged.
    """
    root = Path(directory)
    if not root.is_dir():
        raise FixtureFormatError.missing_directory(root)

    table: RawEvidenceTable = {}
    sources: dict[Step, Path] = {}
    for path in sorted(root.glob("*.json")):
        step = step_for_filename(path.name)
        if step is None:
            log_warning(
                logger,
                "[fixture.ignored] directory=%s file=%s reason=unrecognised_step",
                root,
                path.name,
            )
            continue
        if step in sources:
            raise FixtureFormatError.duplicate_step(step, sources[step], path)
        sources[step] = path
        table[step] = load_fixture_file(path)
    return table


def load_fixture_evidence(directory: Path | str) -> AssessmentEvidence:
    """Load a fixture directory as assessment evidence."""
    return AssessmentEvidence.from_table(load_fixture_table(directory))


def write_fixture_table(table: RawEvidenceTable, directory: Path | str) -> list[Path]:
    """Write a raw evidence table as one fixture file per step.

    The output is readable by :func:`load_fixture_table`.

    Returns
    -------
    list[Path]
        Paths written, in step order.

    """
    root = Path(directory)
    root.mkdir(parents=True, exist_ok=True)
    written: list[Path] = []
    for step in Step:
        entries = table.get(step)
        if entries is None:
            continue
        path = root / f"{step.fixture_stem}.json"
        payload: dict[str, typ.Any] = dict(entries)
        path.write_bytes(msgspec.json.format(msgspec.json.encode(payload), indent=2))
        written.append(path)
    return written
