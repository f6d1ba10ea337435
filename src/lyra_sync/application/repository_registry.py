from __future__ import annotations
"""Process-wide cache of initialized working copies."""

import logging
import threading
from concurrent.futures import Future
from pathlib import Path
from typing import Callable

from lyra_sync.domain.entities import ProjectConfig, RegistryEntryState, RepositoryHandle
from lyra_sync.domain.errors import RepositoryInitializationError
from lyra_sync.domain.ports import FileSystemPort, GitClientPort


GitClientFactory = Callable[[Path], GitClientPort]


class RepositoryRegistry:
    """Caches one `RepositoryHandle` per canonical repository path.

    The first `acquire()` for a path registers a pending future before doing
    any I/O, then clones (unless a .git directory is present), checks out the base
    branch and pulls. Concurrent callers for the same path wait on that future
    instead of starting a second clone. A failed initialization is evicted so a
    later call retries from scratch.
    """

    def __init__(
        self,
        git_client_factory: GitClientFactory,
        filesystem: FileSystemPort,
        *,
        logger: logging.Logger | None = None,
    ) -> None:
        self._git_client_factory = git_client_factory
        self._filesystem = filesystem
        self._logger = logger or logging.getLogger(__name__)
        self._entries: dict[Path, Future[RepositoryHandle]] = {}
        self._lock = threading.Lock()

    def acquire(self, config: ProjectConfig) -> RepositoryHandle:
        key = config.repo_path
        with self._lock:
            entry = self._entries.get(key)
            owner = entry is None
            if owner:
                entry = Future()
                self._entries[key] = entry

        if not owner:
            self._logger.debug(
                "joining repository initialization",
                extra={"event": "registry.acquire.join", "repo_path": str(key)},
            )
            return entry.result()

        try:
            handle = self._initialize(config)
        except BaseException as error:
            with self._lock:
                if self._entries.get(key) is entry:
                    del self._entries[key]
            entry.set_exception(error)
            raise

        entry.set_result(handle)
        return handle

    def refresh(self, handle: RepositoryHandle) -> str:
        """Check out the base branch and pull; returns the base branch name."""
        handle.git.checkout(handle.base_branch)
        handle.git.pull()
        self._logger.info(
            "repository refreshed",
            extra={
                "event": "registry.refresh.success",
                "repo_path": str(handle.key),
                "base_branch": handle.base_branch,
            },
        )
        return handle.base_branch

    def state_of(self, config: ProjectConfig) -> RegistryEntryState | None:
        with self._lock:
            entry = self._entries.get(config.repo_path)
        if entry is None:
            return None
        return RegistryEntryState.READY if entry.done() else RegistryEntryState.PENDING

    def evict(self, config: ProjectConfig) -> bool:
        """Drop a completed entry so the next `acquire()` re-initializes it."""
        with self._lock:
            entry = self._entries.get(config.repo_path)
            if entry is None or not entry.done():
                return False
            del self._entries[config.repo_path]
            return True

    def _initialize(self, config: ProjectConfig) -> RepositoryHandle:
        key = config.repo_path
        self._logger.info(
            "initializing repository",
            extra={
                "event": "registry.init.start",
                "project_id": config.project_id,
                "repo_path": str(key),
                "base_branch": config.base_branch,
            },
        )

        step = "clone"
        try:
            git = self._git_client_factory(key)
            if not self._filesystem.path_exists(key / ".git"):
                git.clone(config.clone_url)
            step = "checkout"
            git.checkout(config.base_branch)
            step = "pull"
            git.pull()
        except Exception as error:
            self._logger.exception(
                "repository initialization failed",
                extra={
                    "event": "registry.init.failed",
                    "repo_path": str(key),
                    "step": step,
                    "error": str(error),
                },
            )
            raise RepositoryInitializationError(key, step, error) from error

        self._logger.info(
            "repository ready",
            extra={"event": "registry.init.success", "repo_path": str(key)},
        )
        return RepositoryHandle(config=config, git=git)
