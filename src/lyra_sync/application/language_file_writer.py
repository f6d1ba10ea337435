from __future__ import annotations
"""Materialize per-language translation tables as structured files."""

import logging
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Any, Iterable, Mapping

from lyra_sync.domain.entities import LanguageTable
from lyra_sync.domain.errors import LanguageFileReadError, LanguageFileWriteError, LanguageFileWriteErrors
from lyra_sync.domain.language_codec import flatten, unflatten
from lyra_sync.domain.ports import FileSystemPort, LanguageCodecPort


_KNOWN_EXTENSIONS = (".yml", ".yaml")


class LanguageFileWriter:
    """Write one file per language, tolerating per-language failures.

    Every language is attempted even when others fail; failures are collected
    after all writes finish and raised together as `LanguageFileWriteErrors`.
    Files that were written successfully stay on disk.
    """

    def __init__(
        self,
        codec: LanguageCodecPort,
        filesystem: FileSystemPort,
        *,
        default_extension: str = ".yml",
        max_workers: int = 4,
        logger: logging.Logger | None = None,
    ) -> None:
        self._codec = codec
        self._filesystem = filesystem
        self._default_extension = default_extension
        self._max_workers = max_workers
        self._logger = logger or logging.getLogger(__name__)

    def write(
        self,
        language_tables: LanguageTable,
        target_dir: Path,
        *,
        extension: str | None = None,
    ) -> list[Path]:
        """Write every language table into `target_dir`.

        Returns:
            Paths that were written, in the order of `language_tables`.

        Raises:
            LanguageFileWriteErrors: One or more languages failed; the
                exception carries the successfully written paths too.
        """
        if not language_tables:
            return []

        languages = list(language_tables)
        try:
            self._filesystem.ensure_directory(target_dir)
        except OSError as error:
            suffix = extension or self._default_extension
            errors = [
                LanguageFileWriteError(language, target_dir / f"{language}{suffix}", error)
                for language in languages
            ]
            self._logger.error(
                "translations directory could not be created",
                extra={"event": "writer.directory.failed", "target_dir": str(target_dir), "error": str(error)},
            )
            raise LanguageFileWriteErrors(errors) from error

        workers = max(1, min(self._max_workers, len(languages)))

        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="lyra-write") as executor:
            futures = [
                (
                    language,
                    executor.submit(
                        self._write_language,
                        language,
                        language_tables[language],
                        target_dir,
                        extension,
                    ),
                )
                for language in languages
            ]

        written: list[Path] = []
        errors: list[LanguageFileWriteError] = []
        for language, future in futures:
            error = future.exception()
            if error is None:
                written.append(future.result())
            elif isinstance(error, LanguageFileWriteError):
                errors.append(error)
            else:
                raise error

        if errors:
            self._logger.error(
                "language file write failed",
                extra={
                    "event": "writer.failed",
                    "target_dir": str(target_dir),
                    "failed_languages": [error.language for error in errors],
                    "written_count": len(written),
                },
            )
            raise LanguageFileWriteErrors(errors, written)

        self._logger.info(
            "language files written",
            extra={"event": "writer.success", "target_dir": str(target_dir), "count": len(written)},
        )
        return written

    def load(self, target_dir: Path, languages: Iterable[str] | None = None) -> LanguageTable:
        """Read language files back into flat tables.

        Args:
            target_dir: Directory holding ``<lang>.yml`` / ``<lang>.yaml`` files.
            languages: Restrict to these codes; missing files yield empty tables.
                When omitted every language file found in the directory is read.

        Raises:
            LanguageFileReadError: A file exists but is not a readable YAML mapping.
        """
        if languages is None:
            if not self._filesystem.path_exists(target_dir):
                return {}
            found = sorted(
                path.stem
                for path in target_dir.iterdir()
                if path.is_file() and path.suffix in _KNOWN_EXTENSIONS
            )
            languages = list(dict.fromkeys(found))

        tables: LanguageTable = {}
        for language in languages:
            path = self.language_file_path(target_dir, language)
            if not self._filesystem.path_exists(path):
                tables[language] = {}
                continue
            try:
                document = self._codec.decode(self._filesystem.read_text(path))
            except Exception as error:
                raise LanguageFileReadError(language, path, error) from error
            tables[language] = flatten(document)
        return tables

    def language_file_path(self, target_dir: Path, language: str, extension: str | None = None) -> Path:
        """Return the file for `language`, reusing an existing ``.yaml``/``.yml`` file."""
        preferred = extension or self._default_extension
        candidates = [preferred, *(ext for ext in _KNOWN_EXTENSIONS if ext != preferred)]
        for candidate in candidates:
            path = target_dir / f"{language}{candidate}"
            if self._filesystem.path_exists(path):
                return path
        return target_dir / f"{language}{preferred}"

    def _write_language(
        self,
        language: str,
        table: Mapping[str, Any],
        target_dir: Path,
        extension: str | None,
    ) -> Path:
        path = target_dir / f"{language}{extension or self._default_extension}"
        try:
            if not language or "/" in language or "\\" in language or language.startswith("."):
                raise ValueError(f"Invalid language code: '{language}'")
            path = self.language_file_path(target_dir, language, extension)
            content = self._codec.encode(unflatten(table))
            self._filesystem.write_text_atomic(path, content)
        except Exception as error:
            raise LanguageFileWriteError(language, path, error) from error

        self._logger.debug(
            "language file written",
            extra={"event": "writer.language.success", "language": language, "path": str(path)},
        )
        return path
