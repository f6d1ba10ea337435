from __future__ import annotations

import logging
import shutil
import subprocess
from pathlib import Path
from typing import Sequence

from lyra_sync.domain.ports import GitClientPort


class ShellGitClientAdapter(GitClientPort):
    def __init__(
        self,
        local_path: Path,
        *,
        git_executable: str = "git",
        timeout_seconds: float = 300.0,
        remote: str = "origin",
    ) -> None:
        self._local_path = local_path
        self._git_executable = git_executable
        self._timeout_seconds = timeout_seconds
        self._remote = remote
        self._logger = logging.getLogger(__name__)

    @property
    def path(self) -> Path:
        return self._local_path

    def clone(self, clone_url: str) -> None:
        local_path = self._local_path
        if (local_path / ".git").exists():
            self._logger.info(
                "clone skipped: repository already exists",
                extra={"event": "git.clone.skip_exists", "local_path": str(local_path)},
            )
            return

        created = not local_path.exists()
        local_path.mkdir(parents=True, exist_ok=True)
        self._logger.info(
            "cloning repository",
            extra={
                "event": "git.clone.start",
                "clone_url": clone_url,
                "local_path": str(local_path),
            },
        )
        try:
            self._run_git(["clone", clone_url, str(local_path)], cwd=local_path.parent)
        except RuntimeError:
            # a half-created target would make every later clone look unnecessary
            if created:
                shutil.rmtree(local_path, ignore_errors=True)
            raise
        self._logger.info(
            "clone completed",
            extra={"event": "git.clone.success", "local_path": str(local_path)},
        )

    def checkout(self, branch: str) -> None:
        self._ensure_repository("checkout")
        if self._local_branch_exists(branch):
            self._run_git(["checkout", branch])
            return
        self._run_git(["checkout", "-b", branch, "--track", f"{self._remote}/{branch}"])

    def pull(self) -> None:
        self._ensure_repository("pull")
        self._logger.info(
            "pulling repository",
            extra={"event": "git.pull.start", "local_path": str(self._local_path)},
        )

        if self._has_upstream():
            self._run_git(["pull", "--ff-only"])
        else:
            current_branch = self.current_branch()
            self._logger.info(
                "repository has no upstream tracking; pulling current branch explicitly",
                extra={
                    "event": "git.pull.no_upstream",
                    "local_path": str(self._local_path),
                    "current_branch": current_branch,
                },
            )
            if not current_branch or current_branch == "HEAD" or not self._remote_branch_exists(current_branch):
                raise RuntimeError(
                    f"Cannot pull repository: branch '{current_branch}' has no remote counterpart: {self._local_path}"
                )
            self._run_git(["pull", "--ff-only", self._remote, current_branch])

        self._logger.info(
            "pull completed",
            extra={"event": "git.pull.success", "local_path": str(self._local_path)},
        )

    def create_branch(self, name: str, base: str) -> None:
        self._run_git(["checkout", "-b", name, base])

    def add(self, paths: Sequence[Path]) -> None:
        if not paths:
            return
        self._run_git(["add", "--", *(str(path) for path in paths)])

    def commit(self, message: str) -> None:
        self._run_git(["commit", "-m", message])

    def push(self, branch: str) -> None:
        self._logger.info(
            "pushing branch",
            extra={"event": "git.push.start", "local_path": str(self._local_path), "branch": branch},
        )
        self._run_git(["push", "-u", self._remote, branch])

    def has_uncommitted_changes(self, paths: Sequence[Path] | None = None) -> bool:
        args = ["status", "--porcelain", "--untracked-files=all"]
        if paths is not None:
            if not paths:
                return False
            args.extend(["--", *(str(path) for path in paths)])
        result = self._run_git(args)
        return bool((result.stdout or "").strip())

    def current_branch(self) -> str | None:
        result = self._run_git_allow_fail(["rev-parse", "--abbrev-ref", "HEAD"])
        if result.returncode != 0:
            return None
        branch = (result.stdout or "").strip()
        return branch or None

    def _ensure_repository(self, operation: str) -> None:
        if not self._local_path.exists():
            raise RuntimeError(f"Cannot {operation} repository: path does not exist: {self._local_path}")
        if not (self._local_path / ".git").exists():
            raise RuntimeError(f"Cannot {operation} repository: not a git repository: {self._local_path}")

    def _has_upstream(self) -> bool:
        result = self._run_git_allow_fail(["rev-parse", "--abbrev-ref", "--symbolic-full-name", "@{u}"])
        return result.returncode == 0

    def _remote_branch_exists(self, branch: str) -> bool:
        result = self._run_git_allow_fail(["show-ref", "--verify", f"refs/remotes/{self._remote}/{branch}"])
        return result.returncode == 0

    def _local_branch_exists(self, branch: str) -> bool:
        result = self._run_git_allow_fail(["show-ref", "--verify", f"refs/heads/{branch}"])
        return result.returncode == 0

    def _run_git_allow_fail(self, args: Sequence[str]) -> subprocess.CompletedProcess[str]:
        command = [self._git_executable, *args]
        try:
            return subprocess.run(
                command,
                cwd=str(self._local_path),
                check=False,
                text=True,
                capture_output=True,
                timeout=self._timeout_seconds,
            )
        except FileNotFoundError as error:
            raise RuntimeError(
                f"Git executable '{self._git_executable}' was not found in PATH"
            ) from error
        except subprocess.TimeoutExpired as error:
            raise RuntimeError(
                f"Git command timed out after {self._timeout_seconds}s: {' '.join(command)}"
            ) from error

    def _run_git(self, args: Sequence[str], cwd: Path | None = None) -> subprocess.CompletedProcess[str]:
        command = [self._git_executable, *args]
        workdir = cwd or self._local_path
        try:
            return subprocess.run(
                command,
                cwd=str(workdir),
                check=True,
                text=True,
                capture_output=True,
                timeout=self._timeout_seconds,
            )
        except FileNotFoundError as error:
            raise RuntimeError(
                f"Git executable '{self._git_executable}' was not found in PATH"
            ) from error
        except subprocess.TimeoutExpired as error:
            raise RuntimeError(
                f"Git command timed out after {self._timeout_seconds}s: {' '.join(command)}"
            ) from error
        except subprocess.CalledProcessError as error:
            stderr = (error.stderr or "").strip()
            stdout = (error.stdout or "").strip()
            details = stderr or stdout or "No command output"
            self._logger.error(
                "git command failed",
                extra={
                    "event": "git.command.error",
                    "command": " ".join(command),
                    "cwd": str(workdir),
                    "return_code": error.returncode,
                    "details": details,
                },
            )
            raise RuntimeError(
                f"Git command failed ({error.returncode}): {' '.join(command)}\n{details}"
            ) from error
