from __future__ import annotations

import copy
import threading
from typing import Any, Mapping

from lyra_sync.domain.entities import LanguageTable, ProjectId
from lyra_sync.domain.ports import TranslationStorePort


class InMemoryTranslationStore(TranslationStorePort):
    """Process-local store of edited translations, keyed by project.

    Readers always get a deep copy, so a publish works on a stable snapshot even
    while edits keep arriving. Edits made before a project is seeded are kept
    and layered over the seeded tables, key by key, or as a whole language for
    `replace_language`.
    """

    def __init__(self) -> None:
        self._tables: dict[ProjectId, LanguageTable] = {}
        self._seeded: set[ProjectId] = set()
        self._replaced_before_seed: dict[ProjectId, set[str]] = {}
        self._lock = threading.Lock()

    def get_language_tables(self, project_id: ProjectId) -> LanguageTable:
        with self._lock:
            return copy.deepcopy(self._tables.get(project_id, {}))

    def is_seeded(self, project_id: ProjectId) -> bool:
        with self._lock:
            return project_id in self._seeded

    def seed_if_absent(self, project_id: ProjectId, tables: LanguageTable) -> bool:
        with self._lock:
            if project_id in self._seeded:
                return False
            merged = copy.deepcopy(tables)
            replaced = self._replaced_before_seed.pop(project_id, set())
            for language, edits in self._tables.get(project_id, {}).items():
                if language in replaced:
                    merged[language] = edits
                else:
                    merged.setdefault(language, {}).update(edits)
            self._tables[project_id] = merged
            self._seeded.add(project_id)
            return True

    def set_translation(self, project_id: ProjectId, language: str, key: str, text: Any) -> None:
        with self._lock:
            self._tables.setdefault(project_id, {}).setdefault(language, {})[key] = text

    def replace_language(self, project_id: ProjectId, language: str, table: Mapping[str, Any]) -> None:
        with self._lock:
            self._tables.setdefault(project_id, {})[language] = dict(table)
            if project_id not in self._seeded:
                self._replaced_before_seed.setdefault(project_id, set()).add(language)
