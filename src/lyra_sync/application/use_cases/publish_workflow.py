from __future__ import annotations
"""Application use case: publish edited translations as a pull request."""

from dataclasses import dataclass, field
import logging
from pathlib import Path
from typing import Callable, TypeVar

from lyra_sync.application.language_file_writer import LanguageFileWriter
from lyra_sync.application.publish_gate import PublishGate
from lyra_sync.application.repository_registry import RepositoryRegistry
from lyra_sync.domain.entities import (
    HostingTarget,
    LanguageTable,
    PullRequestMetadata,
    RepositoryHandle,
    WorkflowOutcome,
    WorkflowResult,
    WorkflowStep,
)
from lyra_sync.domain.errors import WorkflowStepError
from lyra_sync.domain.ports import HostingProviderPort


LOGGER = logging.getLogger(__name__)

T = TypeVar("T")

# once the feature branch exists the tree must be put back on base, even on failure
_RESTORE_AFTER_FAILURE = {
    WorkflowStep.BRANCH,
    WorkflowStep.COMMIT,
    WorkflowStep.PUSH,
    WorkflowStep.OPEN_REQUEST,
}


@dataclass(slots=True)
class PublishWorkflow:
    """Core orchestration use case.

    Steps, strictly in order, for one working tree:

    1. refresh: check out the base branch and pull
    2. materialize: write every language file
    3. diff_check: stop with `NO_CHANGES` when the written files match HEAD
    4. branch: create the feature branch from base
    5. commit: stage exactly the written files and commit
    6. push: push the feature branch
    7. open_request: open the pull request on the hosting service
    8. restore: check out base and pull again

    Only one workflow runs per repository at a time; a concurrent caller gets
    `PublishInProgressError` immediately. Every failure surfaces as
    `WorkflowStepError` naming the step, after a best-effort restore when the
    tree had already left the base branch.
    """

    registry: RepositoryRegistry
    writer: LanguageFileWriter
    hosting: HostingProviderPort
    gate: PublishGate
    logger: logging.Logger = field(default=LOGGER)

    def publish(
        self,
        handle: RepositoryHandle,
        language_tables: LanguageTable,
        metadata: PullRequestMetadata,
        hosting_target: HostingTarget,
    ) -> WorkflowResult:
        """Run the full publish workflow for one repository.

        Args:
            handle: Ready working copy from `RepositoryRegistry.acquire()`.
            language_tables: Snapshot of every language to write.
            metadata: Branch name, commit message and pull request texts.
            hosting_target: Owner/repository that receives the pull request.

        Returns:
            `WorkflowResult` with the branch and pull request URL, or the
            `NO_CHANGES` outcome when the files already match the base branch.
        """
        with self.gate.hold(handle.key):
            return self._run(handle, language_tables, metadata, hosting_target)

    def materialize(self, handle: RepositoryHandle, language_tables: LanguageTable) -> list[Path]:
        """Write language files into the working tree without publishing."""
        with self.gate.hold(handle.key):
            return self.writer.write(
                language_tables,
                handle.config.translations_dir,
                extension=handle.config.file_extension,
            )

    def _run(
        self,
        handle: RepositoryHandle,
        language_tables: LanguageTable,
        metadata: PullRequestMetadata,
        hosting_target: HostingTarget,
    ) -> WorkflowResult:
        git = handle.git
        config = handle.config

        base_branch = self._step(handle, WorkflowStep.REFRESH, lambda: self.registry.refresh(handle))
        written_paths = self._step(
            handle,
            WorkflowStep.MATERIALIZE,
            lambda: self.writer.write(
                language_tables,
                config.translations_dir,
                extension=config.file_extension,
            ),
        )
        changed = self._step(
            handle,
            WorkflowStep.DIFF_CHECK,
            lambda: git.has_uncommitted_changes(written_paths),
        )
        if not changed:
            self.logger.info(
                "no translation changes to publish",
                extra={
                    "event": "publish.no_changes",
                    "repo_path": str(handle.key),
                    "written_count": len(written_paths),
                },
            )
            return WorkflowResult.no_changes(tuple(written_paths))

        branch_name = metadata.branch_name
        self._step(handle, WorkflowStep.BRANCH, lambda: git.create_branch(branch_name, base_branch))
        self._step(handle, WorkflowStep.COMMIT, lambda: self._commit(handle, written_paths, metadata.commit_message))
        self._step(handle, WorkflowStep.PUSH, lambda: git.push(branch_name))
        pull_request_url = self._step(
            handle,
            WorkflowStep.OPEN_REQUEST,
            lambda: self.hosting.create_pull_request(
                hosting_target.owner,
                hosting_target.repo,
                base_branch,
                branch_name,
                metadata.title,
                metadata.body,
            ),
        )

        result = WorkflowResult(
            outcome=WorkflowOutcome.PUBLISHED,
            branch_name=branch_name,
            pull_request_url=pull_request_url,
            written_paths=tuple(written_paths),
        )

        try:
            self._step(handle, WorkflowStep.RESTORE, lambda: self.registry.refresh(handle))
        except WorkflowStepError as error:
            error.result = result
            raise

        self.logger.info(
            "translations published",
            extra={
                "event": "publish.completed",
                "repo_path": str(handle.key),
                "branch": branch_name,
                "pull_request_url": pull_request_url,
            },
        )
        return result

    @staticmethod
    def _commit(handle: RepositoryHandle, paths: list[Path], message: str) -> None:
        handle.git.add(paths)
        handle.git.commit(message)

    def _step(self, handle: RepositoryHandle, step: WorkflowStep, operation: Callable[[], T]) -> T:
        self.logger.info(
            "publish step started",
            extra={"event": "publish.step.start", "repo_path": str(handle.key), "step": step.value},
        )
        try:
            value = operation()
        except Exception as error:
            self.logger.error(
                "publish step failed",
                extra={
                    "event": "publish.step.failed",
                    "repo_path": str(handle.key),
                    "step": step.value,
                    "error": str(error),
                },
            )
            if step in _RESTORE_AFTER_FAILURE:
                self._restore_after_failure(handle, step)
            raise WorkflowStepError(step, error) from error

        self.logger.info(
            "publish step completed",
            extra={"event": "publish.step.success", "repo_path": str(handle.key), "step": step.value},
        )
        return value

    def _restore_after_failure(self, handle: RepositoryHandle, failed_step: WorkflowStep) -> None:
        try:
            self.registry.refresh(handle)
        except Exception:  # noqa: BLE001
            self.logger.exception(
                "restore after failed publish step did not succeed",
                extra={
                    "event": "publish.restore.failed",
                    "repo_path": str(handle.key),
                    "failed_step": failed_step.value,
                },
            )
