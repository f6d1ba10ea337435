from __future__ import annotations

import argparse
import json
import logging
import os
from pathlib import Path
from typing import Sequence

from dotenv import load_dotenv

from lyra_sync.adapters.codec.yaml_codec import YamlLanguageCodec
from lyra_sync.adapters.filesystem.local_filesystem import LocalFileSystemAdapter
from lyra_sync.adapters.git_client.shell_git_client import ShellGitClientAdapter
from lyra_sync.adapters.git_providers.github_cloud import GitHubPullRequestAdapter
from lyra_sync.adapters.translation_store.memory_store import InMemoryTranslationStore
from lyra_sync.application.language_file_writer import LanguageFileWriter
from lyra_sync.application.publish_gate import PublishGate
from lyra_sync.application.repository_registry import RepositoryRegistry
from lyra_sync.application.use_cases.publish_workflow import PublishWorkflow
from lyra_sync.application.use_cases.translation_sync import TranslationSyncService
from lyra_sync.cli.config import DEFAULT_PROJECT_ID, AppConfig, load_config
from lyra_sync.domain.entities import LanguageTable, WorkflowResult
from lyra_sync.domain.errors import (
    ConfigurationError,
    LanguageFileWriteErrors,
    LyraSyncError,
    PublishInProgressError,
)
from lyra_sync.logging_utils import configure_logging


EXIT_FAILURE = 1
EXIT_BUSY = 3


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="lyra-sync",
        description="Write edited translations into a git repository and open a pull request with the changes.",
    )
    parser.add_argument(
        "--config",
        required=False,
        help="Projects YAML file. Falls back to LYRA_PROJECTS_FILE, then to REPO_PATH/CLONE_URL variables.",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    publish = subparsers.add_parser("publish", help="Write language files, commit them on a new branch and open a PR.")
    _add_project_argument(publish)
    _add_set_argument(publish)
    publish.add_argument(
        "--identifier",
        required=False,
        help="Use this identifier instead of a timestamp in the branch name and PR title.",
    )

    write = subparsers.add_parser("write", help="Write language files into the working copy without publishing.")
    _add_project_argument(write)
    _add_set_argument(write)

    show = subparsers.add_parser("show", help="Print the flattened translations of one language as JSON.")
    _add_project_argument(show)
    show.add_argument("--language", required=True, help="Language code, e.g. 'sv'.")

    return parser


def _add_project_argument(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--project",
        default=DEFAULT_PROJECT_ID,
        help=f"Project id from the projects file (default: {DEFAULT_PROJECT_ID}).",
    )


def _add_set_argument(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--set",
        dest="edits",
        action="append",
        default=[],
        metavar="LANG:KEY=TEXT",
        help="Translation edit applied before writing. May be repeated.",
    )


def main(argv: Sequence[str] | None = None) -> int:
    dotenv_path = Path.cwd() / ".env"
    if dotenv_path.exists():
        load_dotenv(dotenv_path)

    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = load_config(args=args, env=os.environ, require_hosting=args.command == "publish")
        edits = parse_edits(getattr(args, "edits", []))
    except ConfigurationError as error:
        parser.error(str(error))

    configure_logging(os.environ.get("LOG_LEVEL", "INFO"), log_file=config.log_file)
    logger = logging.getLogger(__name__)
    logger.info(
        "cli configuration resolved",
        extra={
            "event": "cli.config.resolved",
            "command": args.command,
            "project": args.project,
            "projects": sorted(config.projects),
            "edit_count": sum(len(table) for table in edits.values()),
        },
    )

    service, store = build_service(config)

    try:
        if args.command == "show":
            tables = service.load_languages(args.project, args.language)
            print(json.dumps(tables.get(args.language, {}), ensure_ascii=False, indent=2, default=str))
            return 0

        service.acquire(args.project)
        for language, table in edits.items():
            for key, text in table.items():
                store.set_translation(args.project, language, key, text)

        if args.command == "write":
            paths = service.materialize_languages(args.project, store.get_language_tables(args.project))
            for path in paths:
                print(path)
            return 0

        result = service.publish(args.project, identifier=args.identifier)
    except ConfigurationError as error:
        parser.error(str(error))
    except PublishInProgressError as error:
        print(f"Busy: {error}. Try again later.")
        return EXIT_BUSY
    except LanguageFileWriteErrors as error:
        logger.error("language files failed to write", extra={"event": "cli.write.failed"})
        for path in error.written_paths:
            print(path)
        print(f"Failed: {error}")
        return EXIT_FAILURE
    except LyraSyncError as error:
        logger.exception("cli execution failed", extra={"event": "cli.execution.failed"})
        print(f"Failed: {error}")
        return EXIT_FAILURE

    _print_result(result)
    return 0


def build_service(config: AppConfig) -> tuple[TranslationSyncService, InMemoryTranslationStore]:
    filesystem = LocalFileSystemAdapter()
    registry = RepositoryRegistry(
        git_client_factory=lambda path: ShellGitClientAdapter(path, timeout_seconds=config.git_timeout_seconds),
        filesystem=filesystem,
    )
    writer = LanguageFileWriter(codec=YamlLanguageCodec(), filesystem=filesystem)
    hosting = GitHubPullRequestAdapter(
        token=config.github_token or "",
        api_base_url=config.github_api_base_url,
        timeout_seconds=config.github_timeout_seconds,
    )
    workflow = PublishWorkflow(registry=registry, writer=writer, hosting=hosting, gate=PublishGate())
    store = InMemoryTranslationStore()
    service = TranslationSyncService(
        projects=config.projects,
        registry=registry,
        workflow=workflow,
        writer=writer,
        store=store,
        default_hosting=config.default_hosting,
        branch_prefix=config.branch_prefix,
    )
    return service, store


def parse_edits(raw_edits: Sequence[str]) -> LanguageTable:
    """Parse ``LANG:KEY=TEXT`` arguments into a language table."""
    edits: LanguageTable = {}
    for raw in raw_edits:
        target, separator, text = raw.partition("=")
        language, colon, key = target.partition(":")
        if not separator or not colon or not language.strip() or not key.strip():
            raise ConfigurationError(f"Invalid --set value '{raw}'. Expected LANG:KEY=TEXT")
        edits.setdefault(language.strip(), {})[key.strip()] = text
    return edits


def _print_result(result: WorkflowResult) -> None:
    if not result.published:
        print("No changes: translations already match the base branch.")
        return
    print(f"Branch: {result.branch_name}")
    print(f"Pull request: {result.pull_request_url}")
    print(f"Files written: {len(result.written_paths)}")
    for path in result.written_paths:
        print(f"- {path}")
