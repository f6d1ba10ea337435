from __future__ import annotations
"""Error taxonomy surfaced by the core.

Adapters raise plain `RuntimeError` for external failures; the core wraps them
with the step, language or repository context needed for diagnosis.
"""

from pathlib import Path
from typing import TYPE_CHECKING, Sequence

if TYPE_CHECKING:
    from .entities import WorkflowResult, WorkflowStep


class LyraSyncError(RuntimeError):
    """Base class for all errors raised by lyra-sync."""


class ConfigurationError(LyraSyncError, ValueError):
    """A required setting is missing or invalid. Fatal at startup."""


class UnknownProjectError(LyraSyncError, LookupError):
    def __init__(self, project_id: str) -> None:
        super().__init__(f"Unknown project: '{project_id}'")
        self.project_id = project_id


class KeyConflictError(ValueError):
    """A dotted key is used both as a leaf and as a parent (e.g. ``a`` and ``a.b``)."""


class RepositoryInitializationError(LyraSyncError):
    """Clone, checkout or pull failed while preparing a working copy.

    The registry entry is evicted before this is raised, so retrying
    `RepositoryRegistry.acquire()` starts from scratch.
    """

    def __init__(self, path: Path, step: str, cause: BaseException) -> None:
        super().__init__(f"Failed to initialize repository {path} during {step}: {cause}")
        self.path = path
        self.step = step
        self.cause = cause


class LanguageFileWriteError(LyraSyncError):
    def __init__(self, language: str, path: Path, cause: BaseException) -> None:
        super().__init__(f"Failed to write language file for '{language}' at {path}: {cause}")
        self.language = language
        self.path = path
        self.cause = cause


class LanguageFileWriteErrors(LyraSyncError):
    """Aggregate of every per-language write failure of one writer call.

    Attributes:
        errors: One `LanguageFileWriteError` per failed language.
        written_paths: Files that were written successfully and stay on disk.
    """

    def __init__(self, errors: Sequence[LanguageFileWriteError], written_paths: Sequence[Path] = ()) -> None:
        details = "; ".join(str(error) for error in errors)
        super().__init__(f"{len(errors)} language file(s) failed to write: {details}")
        self.errors = tuple(errors)
        self.written_paths = tuple(written_paths)

    @property
    def failed_languages(self) -> tuple[str, ...]:
        return tuple(error.language for error in self.errors)


class LanguageFileReadError(LyraSyncError):
    """A language file exists but could not be read or decoded."""

    def __init__(self, language: str, path: Path, cause: BaseException) -> None:
        super().__init__(f"Failed to read language file for '{language}' at {path}: {cause}")
        self.language = language
        self.path = path
        self.cause = cause


class WorkflowStepError(LyraSyncError):
    """A publish workflow step failed.

    Attributes:
        step: The `WorkflowStep` that failed.
        cause: Underlying adapter or writer error.
        result: Set only when the restore step fails after a pull request was
            opened, so callers still learn the URL.
    """

    def __init__(
        self,
        step: WorkflowStep,
        cause: BaseException,
        result: WorkflowResult | None = None,
    ) -> None:
        super().__init__(f"Publish failed at step '{step.value}': {cause}")
        self.step = step
        self.cause = cause
        self.result = result


class PublishInProgressError(LyraSyncError):
    """Another publish already holds the working tree; retry later."""

    def __init__(self, key: Path) -> None:
        super().__init__(f"Another publish is in progress for repository {key}")
        self.key = key
