"""Unit tests for structured logging, the translation store and pull request naming."""
import json
import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone
from pathlib import Path

from lyra_sync.adapters.translation_store.memory_store import InMemoryTranslationStore
from lyra_sync.domain.entities import WorkflowStep, build_pull_request_metadata
from lyra_sync.logging_utils import JsonLogFormatter


class TestJsonLogFormatter:
    def test_extra_fields_become_keys(self):
        record = logging.LogRecord("lyra_sync.test", logging.INFO, __file__, 1, "step %s", ("push",), None)
        record.event = "publish.step.start"
        record.repo_path = "/srv/webapp"

        payload = json.loads(JsonLogFormatter().format(record))

        assert payload["message"] == "step push"
        assert payload["level"] == "INFO"
        assert payload["logger"] == "lyra_sync.test"
        assert payload["event"] == "publish.step.start"
        assert payload["repo_path"] == "/srv/webapp"
        assert "lineno" not in payload
        assert "thread" not in payload

    def test_paths_enums_and_tuples_are_serialized(self):
        record = logging.LogRecord("lyra_sync.test", logging.INFO, __file__, 1, "done", (), None)
        record.step = WorkflowStep.PUSH
        record.target_dir = Path("/srv/webapp/src/locale")
        record.failed_languages = ("sv", "en")

        payload = json.loads(JsonLogFormatter().format(record))

        assert payload["step"] == "push"
        assert payload["target_dir"] == "/srv/webapp/src/locale"
        assert payload["failed_languages"] == ["sv", "en"]

    def test_worker_thread_is_named(self):
        formatted = []

        def emit():
            record = logging.LogRecord("lyra_sync.test", logging.INFO, __file__, 1, "written", (), None)
            formatted.append(json.loads(JsonLogFormatter().format(record)))

        worker = threading.Thread(target=emit, name="lyra-write_0")
        worker.start()
        worker.join()

        assert formatted[0]["thread"] == "lyra-write_0"


class TestInMemoryTranslationStore:
    def test_snapshots_are_isolated(self):
        store = InMemoryTranslationStore()
        store.seed_if_absent("webapp", {"sv": {"a": "hej"}})

        snapshot = store.get_language_tables("webapp")
        snapshot["sv"]["a"] = "mutated"
        store.set_translation("webapp", "en", "a", "hi")

        assert store.get_language_tables("webapp") == {"sv": {"a": "hej"}, "en": {"a": "hi"}}
        assert snapshot == {"sv": {"a": "mutated"}}

    def test_edits_do_not_count_as_seeded(self):
        store = InMemoryTranslationStore()

        store.set_translation("webapp", "sv", "a", "hallå")

        assert not store.is_seeded("webapp")
        assert store.seed_if_absent("webapp", {"sv": {"a": "hej", "b": "två"}, "en": {"a": "hi"}}) is True
        assert store.is_seeded("webapp")
        assert store.get_language_tables("webapp") == {"sv": {"a": "hallå", "b": "två"}, "en": {"a": "hi"}}
        assert store.get_language_tables("other") == {}

    def test_language_replaced_before_seeding_is_not_merged(self):
        store = InMemoryTranslationStore()

        store.replace_language("webapp", "sv", {"b": "två"})
        store.seed_if_absent("webapp", {"sv": {"a": "hej"}})

        assert store.get_language_tables("webapp") == {"sv": {"b": "två"}}

    def test_only_first_concurrent_seed_applies(self):
        store = InMemoryTranslationStore()

        with ThreadPoolExecutor(max_workers=8) as executor:
            results = list(executor.map(lambda n: store.seed_if_absent("webapp", {"sv": {"a": str(n)}}), range(8)))
        store.set_translation("webapp", "sv", "a", "edited")

        assert results.count(True) == 1
        assert store.seed_if_absent("webapp", {"sv": {"a": "late"}}) is False
        assert store.get_language_tables("webapp") == {"sv": {"a": "edited"}}


class TestPullRequestMetadata:
    def test_timestamp_names(self):
        metadata = build_pull_request_metadata(datetime(2024, 5, 1, 10, 15, 0, 123456, tzinfo=timezone.utc))

        assert metadata.branch_name == "lyra-translate-2024-05-01T101500"
        assert metadata.commit_message == "Lyra Translate: 2024-05-01T101500"
        assert metadata.title == "LYRA Translate PR: 2024-05-01T101500"
        assert metadata.body == "Created by LYRA at: 2024-05-01T101500"

    def test_prefix_and_identifier(self):
        metadata = build_pull_request_metadata(datetime(2024, 5, 1), prefix="i18n", identifier="ticket-42")

        assert metadata.branch_name == "i18n-translate-ticket-42"
        assert metadata.title == "I18N Translate PR: ticket-42"
