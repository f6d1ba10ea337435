from __future__ import annotations
"""Caller-facing entry points: publish, materialize and read translations per project."""

from dataclasses import dataclass
from datetime import datetime, timezone
import logging
from pathlib import Path
from typing import Callable, Mapping

from lyra_sync.application.language_file_writer import LanguageFileWriter
from lyra_sync.application.repository_registry import RepositoryRegistry
from lyra_sync.application.use_cases.publish_workflow import PublishWorkflow
from lyra_sync.domain.entities import (
    HostingTarget,
    LanguageTable,
    ProjectConfig,
    ProjectId,
    RepositoryHandle,
    WorkflowResult,
    build_pull_request_metadata,
)
from lyra_sync.domain.errors import ConfigurationError, UnknownProjectError
from lyra_sync.domain.ports import TranslationStorePort


LOGGER = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(slots=True)
class TranslationSyncService:
    """Resolve projects and drive the registry, writer and publish workflow.

    The translation store is seeded from the files already in the working copy
    the first time a project is used, so edits are applied on top of the
    committed translations.
    """

    projects: Mapping[ProjectId, ProjectConfig]
    registry: RepositoryRegistry
    workflow: PublishWorkflow
    writer: LanguageFileWriter
    store: TranslationStorePort
    default_hosting: HostingTarget | None = None
    branch_prefix: str = "lyra"
    clock: Callable[[], datetime] = _utc_now

    def publish(self, project_id: ProjectId, identifier: str | None = None) -> WorkflowResult:
        config = self._project(project_id)
        hosting_target = self._hosting_target(config)
        handle = self.acquire(project_id)
        tables = self.store.get_language_tables(project_id)
        metadata = build_pull_request_metadata(self.clock(), prefix=self.branch_prefix, identifier=identifier)

        LOGGER.info(
            "publish requested",
            extra={
                "event": "service.publish.start",
                "project_id": project_id,
                "languages": sorted(tables),
                "branch": metadata.branch_name,
            },
        )
        return self.workflow.publish(handle, tables, metadata, hosting_target)

    def materialize_languages(self, project_id: ProjectId, language_tables: LanguageTable) -> list[Path]:
        handle = self.acquire(project_id)
        return self.workflow.materialize(handle, language_tables)

    def load_languages(self, project_id: ProjectId, language: str | None = None) -> LanguageTable:
        config = self._project(project_id)
        self.acquire(project_id)
        languages = [language] if language else None
        return self.writer.load(config.translations_dir, languages)

    def acquire(self, project_id: ProjectId) -> RepositoryHandle:
        """Return the ready working copy, seeding the store on first use."""
        config = self._project(project_id)
        handle = self.registry.acquire(config)
        if self.store.is_seeded(project_id):
            return handle
        if self.store.seed_if_absent(project_id, self.writer.load(config.translations_dir)):
            LOGGER.info(
                "translation store seeded from working copy",
                extra={"event": "service.store.seeded", "project_id": project_id},
            )
        return handle

    def _project(self, project_id: ProjectId) -> ProjectConfig:
        try:
            return self.projects[project_id]
        except KeyError:
            raise UnknownProjectError(project_id) from None

    def _hosting_target(self, config: ProjectConfig) -> HostingTarget:
        target = config.hosting or self.default_hosting
        if target is None:
            raise ConfigurationError(
                f"No hosting owner/repo configured for project '{config.project_id}'. "
                "Set GITHUB_OWNER and GITHUB_REPO or github_owner/github_repo in the projects file"
            )
        return target
