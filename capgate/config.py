"""Live assessment configuration read from an environment-style mapping.

Credential discovery happens here and nowhere else: the engine receives the
target repository and an explicit tuple of named credentials.

Usage
-----
Build configuration from an explicit mapping:

>>> config = AssessmentConfig.from_mapping(
...     {"SAR_REPO": "octo/widget", "PAT_MIN": "ghp_example"}
... )
>>> config.repository.slug
'octo/widget'
>>> [credential.name for credential in config.credentials]
['PAT_MIN']

"""

from __future__ import annotations

import collections.abc as cabc
import dataclasses as dc
import os
import re

REPO_ENV_VAR = "SAR_REPO"
GITHUB_REPOSITORY_ENV_VAR = "GITHUB_REPOSITORY"
REPO_OWNER_ENV_VAR = "REPO_OWNER"
REPO_NAME_ENV_VAR = "REPO_NAME"
TOKENS_ENV_VAR = "SAR_TOKENS"
TOKENS_FALLBACK_ENV_VAR = "TOKENS"
BRANCH_ENV_VAR = "SAR_BRANCH"
BRANCH_FALLBACK_ENV_VAR = "BRANCH"
API_URL_ENV_VAR = "SAR_GITHUB_API_URL"

DEFAULT_API_URL = "https://api.github.com"
TOKEN_NAME_PATTERN = re.compile(r"GH_TOKEN|PAT_|GITHUB_TOKEN")


def parse_repo_slug(slug: str) -> tuple[str, str]:
    """Parse a repository slug into owner and name.

    Raises
    ------
    ValueError
        If the slug is not in ``owner/name`` format.

    Examples
    --------
    >>> parse_repo_slug("octo/widget")
    ('octo', 'widget')

    """
    if slug.count("/") != 1:
        msg = f"Invalid repository slug: expected 'owner/name', got {slug!r}"
        raise ValueError(msg)

    owner, name = slug.split("/")
    if not owner or not name:
        msg = f"Invalid repository slug: expected 'owner/name', got {slug!r}"
        raise ValueError(msg)

    return owner, name


@dc.dataclass(frozen=True, slots=True)
class RepositoryRef:
    """Repository targeted by an assessment."""

    owner: str
    name: str

    @property
    def slug(self) -> str:
        """Return the ``owner/name`` slug."""
        return f"{self.owner}/{self.name}"

    @classmethod
    def parse(cls, slug: str) -> RepositoryRef:
        """Build a reference from an ``owner/name`` slug."""
        owner, name = parse_repo_slug(slug.strip())
        return cls(owner=owner, name=name)


@dc.dataclass(frozen=True, slots=True)
class Credential:
    """A named token. The value never appears in reprs or reports."""

    name: str
    value: str = dc.field(repr=False)


def _first_set(env: cabc.Mapping[str, str], *names: str) -> str:
    for name in names:
        value = env.get(name, "").strip()
        if value:
            return value
    return ""


def _repository_from(env: cabc.Mapping[str, str]) -> RepositoryRef | None:
    slug = _first_set(env, REPO_ENV_VAR, GITHUB_REPOSITORY_ENV_VAR)
    if slug:
        return RepositoryRef.parse(slug)
    owner = env.get(REPO_OWNER_ENV_VAR, "").strip()
    name = env.get(REPO_NAME_ENV_VAR, "").strip()
    if owner and name:
        return RepositoryRef(owner=owner, name=name)
    return None


def _token_names(env: cabc.Mapping[str, str]) -> list[str]:
    allow_list = _first_set(env, TOKENS_ENV_VAR, TOKENS_FALLBACK_ENV_VAR)
    if allow_list:
        names = [name.strip() for name in allow_list.split(",")]
        return list(dict.fromkeys(name for name in names if name))
    return sorted(name for name in env if TOKEN_NAME_PATTERN.search(name))


@dc.dataclass(frozen=True, slots=True)
class AssessmentConfig:
    """Inputs of a live assessment.

    Attributes
    ----------
    repository
        Target repository, or ``None`` when none is configured. A missing
        repository is reported as a gap, not raised.
    credentials
        Named tokens to probe with, in assessment order.
    skipped_tokens
        Token names that were selected but carry no value. They are recorded
        as skipped probes and take no part in the assessment.
    branch
        Branch override. When ``None`` the repository's default branch is
        probed.
    api_url
        Base URL of the GitHub REST API.

    """

    repository: RepositoryRef | None = None
    credentials: tuple[Credential, ...] = ()
    skipped_tokens: tuple[str, ...] = ()
    branch: str | None = None
    api_url: str = DEFAULT_API_URL

    @classmethod
    def from_mapping(cls, env: cabc.Mapping[str, str]) -> AssessmentConfig:
        """Create configuration from an environment-style mapping.

        Reads the following keys:

        - ``SAR_REPO``, else ``GITHUB_REPOSITORY``, else ``REPO_OWNER`` with
          ``REPO_NAME``: the target repository.
        - ``SAR_TOKENS``, else ``TOKENS``: comma-separated token variable
          names. When unset, every variable whose name contains
          ``GH_TOKEN``, ``PAT_`` or ``GITHUB_TOKEN`` is used, in name order.
        - ``SAR_BRANCH``, else ``BRANCH``: branch override.
        - ``SAR_GITHUB_API_URL``: REST API base URL.

        Raises
        ------
        ValueError
            If a repository slug is present but malformed.

        """
        credentials: list[Credential] = []
        skipped: list[str] = []
        for name in _token_names(env):
            value = env.get(name, "").strip()
            if value:
                credentials.append(Credential(name=name, value=value))
            else:
                skipped.append(name)

        api_url = env.get(API_URL_ENV_VAR, "").strip().rstrip("/")
        return cls(
            repository=_repository_from(env),
            credentials=tuple(credentials),
            skipped_tokens=tuple(skipped),
            branch=_first_set(env, BRANCH_ENV_VAR, BRANCH_FALLBACK_ENV_VAR) or None,
            api_url=api_url or DEFAULT_API_URL,
        )

    @classmethod
    def from_env(cls) -> AssessmentConfig:
        """Create configuration from the process environment."""
        return cls.from_mapping(os.environ)

    @property
    def token_names(self) -> tuple[str, ...]:
        """Return the names of all selected tokens, skipped ones last."""
        return tuple(c.name for c in self.credentials) + self.skipped_tokens
