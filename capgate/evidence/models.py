"""Evidence structures gathered per probe step and per token."""

from __future__ import annotations

import dataclasses
import types
import typing as typ

import msgspec

from .payloads import StepPayload, decode_payload
from .steps import TRANSPORT_FAILURE_STATUS, Step


class RawEvidence(msgspec.Struct, kw_only=True, frozen=True):
    """Probe result exactly as recorded: HTTP status plus undecoded body.

    Attributes
    ----------
    endpoint
        URL that was requested.
    status_code
        HTTP status, ``0`` for a transport failure, ``None`` if unknown.
    ok
        Whether the response was a 2xx.
    data
        Parsed JSON body.

    """

    endpoint: str | None = None
    status_code: int | None = None
    ok: bool = False
    data: typ.Any = None

    @classmethod
    def transport_failure(cls, endpoint: str, detail: str) -> RawEvidence:
        """Return the permissive placeholder for a probe that failed outright."""
        return cls(
            endpoint=endpoint,
            status_code=TRANSPORT_FAILURE_STATUS,
            ok=False,
            data={"error": detail},
        )


class ProbeSkipped(msgspec.Struct, frozen=True):
    """Marker for a probe that was deliberately never issued."""

    skipped: bool = True


SKIPPED = ProbeSkipped()

RawEntry = RawEvidence | ProbeSkipped
# step -> token -> recorded entry; the shape of a fixture directory.
RawEvidenceTable = dict[Step, dict[str, RawEntry]]


@dataclasses.dataclass(frozen=True, slots=True)
class EvidenceRecord:
    """Decoded result of one probe for one token."""

    step: Step
    endpoint: str | None
    status_code: int | None
    ok: bool
    payload: StepPayload | None = None

    @classmethod
    def from_raw(cls, step: Step, raw: RawEvidence) -> EvidenceRecord:
        """Decode a raw record into its step-specific payload."""
        return cls(
            step=step,
            endpoint=raw.endpoint,
            status_code=raw.status_code,
            ok=raw.ok,
            payload=decode_payload(step, raw.status_code, raw.data),
        )

    def has_status(self, *codes: int) -> bool:
        """Return True when the recorded status is one of ``codes``."""
        return self.status_code in codes


@dataclasses.dataclass(frozen=True, slots=True)
class TokenEvidenceSet:
    """All evidence collected for a single token, keyed by step."""

    token: str
    records: typ.Mapping[Step, EvidenceRecord | ProbeSkipped]

    def get(self, step: Step) -> EvidenceRecord | None:
        """Return the observed record for ``step``, or None if not observed."""
        entry = self.records.get(step)
        return entry if isinstance(entry, EvidenceRecord) else None

    def is_skipped(self, step: Step) -> bool:
        """Return True when the step was explicitly skipped for this token."""
        return isinstance(self.records.get(step), ProbeSkipped)

    def status(self, step: Step) -> int | None:
        """Return the HTTP status observed for ``step``, if any."""
        record = self.get(step)
        return record.status_code if record is not None else None


class TokenEvidenceBuilder:
    """Accumulate one token's records as results arrive."""

    def __init__(self, token: str) -> None:
        """Start an empty evidence set for ``token``."""
        self._token = token
        self._records: dict[Step, EvidenceRecord | ProbeSkipped] = {}

    @property
    def observed(self) -> bool:
        """Return True once at least one probe result has been recorded."""
        return any(isinstance(v, EvidenceRecord) for v in self._records.values())

    def add(self, step: Step, entry: RawEntry) -> None:
        """Record a raw entry for ``step``, decoding it on the way in."""
        if isinstance(entry, ProbeSkipped):
            self._records[step] = entry
        else:
            self._records[step] = EvidenceRecord.from_raw(step, entry)

    def build(self) -> TokenEvidenceSet:
        """Freeze the accumulated records."""
        ordered = {step: self._records[step] for step in Step if step in self._records}
        return TokenEvidenceSet(
            token=self._token, records=types.MappingProxyType(ordered)
        )


@dataclasses.dataclass(frozen=True, slots=True)
class AssessmentEvidence:
    """Evidence for every token taking part in one assessment.

    Token order is significant: it decides which token supplies
    repository-level facts and breaks ties in least-privilege ordering.
    """

    tokens: tuple[TokenEvidenceSet, ...]

    @classmethod
    def from_table(cls, table: RawEvidenceTable) -> AssessmentEvidence:
        """Build evidence from a step-keyed table of raw entries.

        Tokens appear in order of first mention, walking steps in their
        canonical order. A token whose every entry was skipped is dropped.
        """
        builders: dict[str, TokenEvidenceBuilder] = {}
        for step in Step:
            for token, entry in table.get(step, {}).items():
                builder = builders.setdefault(token, TokenEvidenceBuilder(token))
                builder.add(step, entry)
        return cls(
            tokens=tuple(
                builder.build() for builder in builders.values() if builder.observed
            )
        )

    @property
    def token_names(self) -> tuple[str, ...]:
        """Return token identifiers in evidence order."""
        return tuple(item.token for item in self.tokens)

    def records_for(self, step: Step) -> list[EvidenceRecord]:
        """Return every observed record for ``step`` across tokens, in order."""
        records: list[EvidenceRecord] = []
        for item in self.tokens:
            record = item.get(step)
            if record is not None:
                records.append(record)
        return records
