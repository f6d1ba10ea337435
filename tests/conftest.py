import logging
from datetime import datetime, timezone

import pytest

from fakes import FakeGitClient, FakeHostingProvider
from lyra_sync.adapters.codec.yaml_codec import YamlLanguageCodec
from lyra_sync.adapters.filesystem.local_filesystem import LocalFileSystemAdapter
from lyra_sync.adapters.translation_store.memory_store import InMemoryTranslationStore
from lyra_sync.application.language_file_writer import LanguageFileWriter
from lyra_sync.application.publish_gate import PublishGate
from lyra_sync.application.repository_registry import RepositoryRegistry
from lyra_sync.application.use_cases.publish_workflow import PublishWorkflow
from lyra_sync.application.use_cases.translation_sync import TranslationSyncService
from lyra_sync.domain.entities import HostingTarget, ProjectConfig


@pytest.fixture
def project(tmp_path):
    """Project whose working tree lives under the test's tmp_path."""
    repo_path = (tmp_path / "webapp").resolve()
    return ProjectConfig(
        project_id="webapp",
        repo_path=repo_path,
        clone_url="git@github.com:acme/webapp.git",
        base_branch="main",
        translations_dir=repo_path / "src" / "locale",
    )


@pytest.fixture
def hosting_target():
    return HostingTarget(owner="acme", repo="webapp")


@pytest.fixture
def fake_git(project):
    return FakeGitClient(project.repo_path)


@pytest.fixture
def hosting():
    return FakeHostingProvider()


@pytest.fixture
def filesystem():
    return LocalFileSystemAdapter()


@pytest.fixture
def registry(fake_git, filesystem):
    return RepositoryRegistry(git_client_factory=lambda path: fake_git, filesystem=filesystem)


@pytest.fixture
def writer(filesystem):
    return LanguageFileWriter(codec=YamlLanguageCodec(), filesystem=filesystem)


@pytest.fixture
def workflow(registry, writer, hosting):
    return PublishWorkflow(registry=registry, writer=writer, hosting=hosting, gate=PublishGate())


@pytest.fixture
def store():
    return InMemoryTranslationStore()


@pytest.fixture
def service(project, registry, workflow, writer, store, hosting_target):
    return TranslationSyncService(
        projects={project.project_id: project},
        registry=registry,
        workflow=workflow,
        writer=writer,
        store=store,
        default_hosting=hosting_target,
        clock=lambda: datetime(2024, 5, 1, 10, 15, 0, tzinfo=timezone.utc),
    )


@pytest.fixture(autouse=True)
def quiet_logging():
    """Keep library logs out of test output unless a test opts in with caplog."""
    logger = logging.getLogger("lyra_sync")
    previous = logger.level
    logger.setLevel(logging.CRITICAL)
    yield
    logger.setLevel(previous)
