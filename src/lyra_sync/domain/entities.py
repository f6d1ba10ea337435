from __future__ import annotations
"""Core domain entities shared by the registry, the publish workflow and adapters.

These data models are intentionally framework-agnostic and can be reused across
different adapters (CLI, tests, a future HTTP layer).
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .ports import GitClientPort


ProjectId = str

# language code -> flat dotted key -> translated text (or the scalar/list decoded from the file)
LanguageTable = dict[str, dict[str, Any]]


@dataclass(slots=True, frozen=True)
class HostingTarget:
    """Owner/repository pair on the hosting service that receives pull requests."""

    owner: str
    repo: str


@dataclass(slots=True, frozen=True)
class ProjectConfig:
    """Immutable description of one translated repository.

    Attributes:
        project_id: Logical project name used by callers.
        repo_path: Canonical local working-tree path. Unique per project.
        clone_url: SSH/HTTPS URL that `GitClientPort` can clone from.
        base_branch: Branch workflows read from and propose changes against.
        translations_dir: Absolute directory holding one file per language.
        file_extension: Extension of newly created language files.
        hosting: Optional per-project override of the process-level hosting target.
    """

    project_id: ProjectId
    repo_path: Path
    clone_url: str
    base_branch: str
    translations_dir: Path
    file_extension: str = ".yml"
    hosting: HostingTarget | None = None


@dataclass(slots=True)
class RepositoryHandle:
    """One initialized local working copy.

    Handles are created and cached by `RepositoryRegistry`; callers never build
    them directly.
    """

    config: ProjectConfig
    git: GitClientPort

    @property
    def key(self) -> Path:
        return self.config.repo_path

    @property
    def base_branch(self) -> str:
        return self.config.base_branch


@dataclass(slots=True, frozen=True)
class PullRequestMetadata:
    """Names and texts used for one publish invocation."""

    branch_name: str
    title: str
    body: str
    commit_message: str


def build_pull_request_metadata(
    now: datetime,
    *,
    prefix: str = "lyra",
    identifier: str | None = None,
) -> PullRequestMetadata:
    """Build branch name, commit message and pull request texts.

    The stamp is the second-resolution ISO timestamp without colons
    (``2024-05-01T101500``) unless the caller supplies an ``identifier``.
    """
    stamp = identifier or now.replace(microsecond=0).isoformat().replace(":", "").split("+")[0]
    upper = prefix.upper()
    return PullRequestMetadata(
        branch_name=f"{prefix}-translate-{stamp}",
        title=f"{upper} Translate PR: {stamp}",
        body=f"Created by {upper} at: {stamp}",
        commit_message=f"{prefix.capitalize()} Translate: {stamp}",
    )


class WorkflowStep(str, Enum):
    REFRESH = "refresh"
    MATERIALIZE = "materialize"
    DIFF_CHECK = "diff_check"
    BRANCH = "branch"
    COMMIT = "commit"
    PUSH = "push"
    OPEN_REQUEST = "open_request"
    RESTORE = "restore"


class WorkflowOutcome(str, Enum):
    PUBLISHED = "published"
    NO_CHANGES = "no_changes"


@dataclass(slots=True, frozen=True)
class WorkflowResult:
    """Result of one publish invocation.

    Attributes:
        outcome: `PUBLISHED` or the `NO_CHANGES` sentinel outcome.
        branch_name: Feature branch pushed for the pull request.
        pull_request_url: Browser URL returned by the hosting service.
        written_paths: Language files written during the materialize step.
    """

    outcome: WorkflowOutcome
    branch_name: str | None = None
    pull_request_url: str | None = None
    written_paths: tuple[Path, ...] = field(default_factory=tuple)

    @classmethod
    def no_changes(cls, written_paths: tuple[Path, ...] = ()) -> WorkflowResult:
        return cls(outcome=WorkflowOutcome.NO_CHANGES, written_paths=written_paths)

    @property
    def published(self) -> bool:
        return self.outcome is WorkflowOutcome.PUBLISHED


class RegistryEntryState(str, Enum):
    PENDING = "pending"
    READY = "ready"
