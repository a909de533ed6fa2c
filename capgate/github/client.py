"""Live evidence source probing the GitHub REST API.

Probing runs in two rounds. Repository metadata is fetched first, one token
after another, because its ``default_branch`` fixes the branch every later
probe targets. The remaining probes for all tokens are then issued together.
A probe never raises for network or body problems: it records the
``status_code=0`` placeholder instead, so one failing token cannot stop the
others from being assessed.
"""

from __future__ import annotations

import asyncio
import dataclasses
import typing as typ

import httpx
import msgspec

from capgate.config import DEFAULT_API_URL
from capgate.evidence import SKIPPED, RawEvidence, RepoMetadata, Step, decode_payload
from capgate.logging import get_logger, log_debug, log_warning

from .errors import GitHubConfigError

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from capgate.config import Credential, RepositoryRef
    from capgate.evidence import RawEvidenceTable

logger = get_logger(__name__)

DEFAULT_BRANCH_FALLBACK = "main"
SECOND_ROUND_STEPS: tuple[Step, ...] = tuple(
    step for step in Step if step is not Step.REPO_METADATA
)


@dataclasses.dataclass(frozen=True, slots=True)
class GitHubProbeConfig:
    """Configuration for the GitHub REST probe client."""

    api_url: str = DEFAULT_API_URL
    timeout_s: float = 20.0
    user_agent: str = "capgate/0.1"


@dataclasses.dataclass(frozen=True, slots=True)
class LiveCollection:
    """Raw evidence gathered live plus the branch that was probed."""

    table: RawEvidenceTable
    branch: str


class GitHubProbeClient:
    """Issue single REST probes on behalf of named credentials."""

    def __init__(
        self,
        config: GitHubProbeConfig | None = None,
        *,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialise the client, creating an HTTP client unless one is given."""
        self._config = config or GitHubProbeConfig()
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(
            timeout=self._config.timeout_s,
            headers={
                "User-Agent": self._config.user_agent,
                "Accept": "application/vnd.github+json",
            },
        )

    async def aclose(self) -> None:
        """Close any owned HTTP resources."""
        if self._owns_client:
            await self._client.aclose()

    def endpoint_for(self, step: Step, repo: RepositoryRef, *, branch: str) -> str:
        """Return the absolute URL probed for ``step``."""
        base = f"{self._config.api_url.rstrip('/')}/repos/{repo.owner}/{repo.name}"
        return base + step.path_for(owner=repo.owner, branch=branch)

    async def probe(
        self,
        step: Step,
        credential: Credential,
        *,
        repo: RepositoryRef,
        branch: str,
    ) -> RawEvidence:
        """Run one probe and record its outcome.

        Parameters
        ----------
        step
            Probe to issue.
        credential
            Token to authenticate with.
        repo
            Repository under assessment.
        branch
            Branch targeted by branch-scoped probes.

        Returns
        -------
        RawEvidence
            The HTTP status and parsed body. Transport errors and bodies that
            are not JSON yield the ``status_code=0`` placeholder.

        Raises
        ------
        GitHubConfigError
            If the credential has an empty value.

        """
        if not credential.value.strip():
            raise GitHubConfigError.empty_token(credential.name)

        endpoint = self.endpoint_for(step, repo, branch=branch)
        try:
            response = await self._client.get(
                endpoint,
                headers={"Authorization": f"Bearer {credential.value}"},
            )
        except httpx.HTTPError as exc:
            detail = str(exc) or type(exc).__name__
            return self._failed(step, credential, endpoint, detail)

        try:
            data = msgspec.json.decode(response.content) if response.content else None
        except msgspec.DecodeError as exc:
            return self._failed(step, credential, endpoint, f"malformed body: {exc}")

        log_debug(
            logger,
            "[probe.completed] step=%s token=%s status=%s",
            step,
            credential.name,
            response.status_code,
        )
        return RawEvidence(
            endpoint=endpoint,
            status_code=response.status_code,
            ok=response.is_success,
            data=data,
        )

    @staticmethod
    def _failed(
        step: Step, credential: Credential, endpoint: str, detail: str
    ) -> RawEvidence:
        log_warning(
            logger,
            "[probe.failed] step=%s token=%s endpoint=%s error=%s",
            step,
            credential.name,
            endpoint,
            detail,
        )
        return RawEvidence.transport_failure(endpoint, detail)


def discover_default_branch(
    results: cabc.Iterable[RawEvidence],
) -> str | None:
    """Return the first default branch reported by a repository metadata read."""
    for result in results:
        payload = decode_payload(Step.REPO_METADATA, result.status_code, result.data)
        if isinstance(payload, RepoMetadata) and payload.default_branch:
            return payload.default_branch
    return None


async def collect_live_table(
    client: GitHubProbeClient,
    repo: RepositoryRef,
    credentials: cabc.Sequence[Credential],
    *,
    branch: str | None = None,
    skipped_tokens: cabc.Sequence[str] = (),
) -> LiveCollection:
    """Probe every step for every credential.

    Parameters
    ----------
    client
        Probe client to issue requests with.
    repo
        Repository under assessment.
    credentials
        Tokens to probe with, in assessment order.
    branch
        Branch override. Without one, the first default branch reported in
        the metadata round is used, falling back to ``main``.
    skipped_tokens
        Token names recorded as skipped for every step.

    Returns
    -------
    LiveCollection
        The step-keyed raw evidence table and the probed branch.

    """
    table: RawEvidenceTable = {step: {} for step in Step}

    metadata = table[Step.REPO_METADATA]
    for credential in credentials:
        metadata[credential.name] = await client.probe(
            Step.REPO_METADATA,
            credential,
            repo=repo,
            branch=branch or DEFAULT_BRANCH_FALLBACK,
        )

    target = (
        branch
        or discover_default_branch(
            entry for entry in metadata.values() if isinstance(entry, RawEvidence)
        )
        or DEFAULT_BRANCH_FALLBACK
    )

    jobs = [
        (step, credential)
        for credential in credentials
        for step in SECOND_ROUND_STEPS
    ]
    results = await asyncio.gather(
        *(
            client.probe(step, credential, repo=repo, branch=target)
            for step, credential in jobs
        )
    )
    for (step, credential), result in zip(jobs, results, strict=True):
        table[step][credential.name] = result

    for name in skipped_tokens:
        for step in Step:
            table[step][name] = SKIPPED

    return LiveCollection(table=table, branch=target)
