from __future__ import annotations
"""Hexagonal architecture port interfaces.

Core use cases depend only on these abstractions. Adapters provide concrete
implementations for git, the hosting API, the filesystem and so on.
"""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Sequence

from .entities import LanguageTable, ProjectId


class GitClientPort(ABC):
    """Local git operations against one working tree.

    Every call is synchronous and raises `RuntimeError` on process, network,
    auth or merge problems.
    """

    @property
    @abstractmethod
    def path(self) -> Path:
        """Working-tree directory this client is bound to."""
        raise NotImplementedError

    @abstractmethod
    def clone(self, clone_url: str) -> None:
        """Clone remote repository into `path`."""
        raise NotImplementedError

    @abstractmethod
    def checkout(self, branch: str) -> None:
        raise NotImplementedError

    @abstractmethod
    def pull(self) -> None:
        """Fast-forward the current branch from its remote."""
        raise NotImplementedError

    @abstractmethod
    def create_branch(self, name: str, base: str) -> None:
        """Create `name` from `base` and switch to it."""
        raise NotImplementedError

    @abstractmethod
    def add(self, paths: Sequence[Path]) -> None:
        raise NotImplementedError

    @abstractmethod
    def commit(self, message: str) -> None:
        raise NotImplementedError

    @abstractmethod
    def push(self, branch: str) -> None:
        """Push `branch` to origin and set it as upstream."""
        raise NotImplementedError

    @abstractmethod
    def has_uncommitted_changes(self, paths: Sequence[Path] | None = None) -> bool:
        """Return whether the working tree differs from HEAD.

        Args:
            paths: Restrict the check to these paths. Untracked files count as
                changes.
        """
        raise NotImplementedError

    @abstractmethod
    def current_branch(self) -> str | None:
        raise NotImplementedError


class HostingProviderPort(ABC):
    """Pull request creation on a hosting service (GitHub adapter)."""

    @abstractmethod
    def create_pull_request(
        self,
        owner: str,
        repo: str,
        base: str,
        head: str,
        title: str,
        body: str,
    ) -> str:
        """Open a pull request and return its browser URL."""
        raise NotImplementedError


class FileSystemPort(ABC):
    """Filesystem operations abstracted for testability and portability."""

    @abstractmethod
    def ensure_directory(self, path: Path) -> None:
        """Ensure target directory exists (create recursively if needed)."""
        raise NotImplementedError

    @abstractmethod
    def path_exists(self, path: Path) -> bool:
        """Return whether a path exists."""
        raise NotImplementedError

    @abstractmethod
    def write_text_atomic(self, path: Path, content: str) -> None:
        """Replace `path` with `content` so readers never see a partial file."""
        raise NotImplementedError

    @abstractmethod
    def read_text(self, path: Path) -> str:
        raise NotImplementedError


class LanguageCodecPort(ABC):
    """Text serialization of nested translation documents."""

    @abstractmethod
    def encode(self, document: dict[str, Any]) -> str:
        raise NotImplementedError

    @abstractmethod
    def decode(self, text: str) -> dict[str, Any]:
        raise NotImplementedError


class TranslationStorePort(ABC):
    """Source of the edited translations that get published."""

    @abstractmethod
    def get_language_tables(self, project_id: ProjectId) -> LanguageTable:
        """Return an immutable snapshot of every language for a project."""
        raise NotImplementedError

    @abstractmethod
    def is_seeded(self, project_id: ProjectId) -> bool:
        raise NotImplementedError

    @abstractmethod
    def seed_if_absent(self, project_id: ProjectId, tables: LanguageTable) -> bool:
        """Install `tables` as the baseline unless the project is already seeded.

        Edits recorded before seeding win over the baseline. Returns whether
        this call seeded the project.
        """
        raise NotImplementedError
