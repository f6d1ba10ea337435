"""Unit tests for the per-language file writer."""
from unittest.mock import patch

import pytest
import yaml

from lyra_sync.domain.errors import LanguageFileReadError, LanguageFileWriteError, LanguageFileWriteErrors


class TestLanguageFileWriterWrite:
    """Fan-out writes with aggregated failures."""

    def test_scenario_writes_nested_yaml(self, writer, tmp_path):
        target = tmp_path / "locale"

        paths = writer.write({"sv": {"a.b": "hej"}}, target)

        assert paths == [target / "sv.yml"]
        assert yaml.safe_load((target / "sv.yml").read_text(encoding="utf-8")) == {"a": {"b": "hej"}}

    def test_returns_paths_in_language_order(self, writer, tmp_path):
        tables = {"sv": {"a": "hej"}, "en": {"a": "hi"}, "de": {"a": "hallo"}}

        paths = writer.write(tables, tmp_path)

        assert [path.name for path in paths] == ["sv.yml", "en.yml", "de.yml"]

    def test_empty_table_writes_nothing(self, writer, tmp_path):
        assert writer.write({}, tmp_path / "locale") == []
        assert not (tmp_path / "locale").exists()

    def test_rewrite_is_byte_identical(self, writer, tmp_path):
        tables = {"sv": {"home.title": "Välkommen", "home.body": "Text"}}
        writer.write(tables, tmp_path)
        first = (tmp_path / "sv.yml").read_bytes()

        writer.write(tables, tmp_path)

        assert (tmp_path / "sv.yml").read_bytes() == first

    def test_existing_yaml_extension_is_reused(self, writer, tmp_path):
        (tmp_path / "sv.yaml").write_text("a: old\n", encoding="utf-8")

        paths = writer.write({"sv": {"a": "new"}, "en": {"a": "hi"}}, tmp_path)

        assert paths == [tmp_path / "sv.yaml", tmp_path / "en.yml"]
        assert not (tmp_path / "sv.yml").exists()

    def test_explicit_extension(self, writer, tmp_path):
        paths = writer.write({"sv": {"a": "hej"}}, tmp_path, extension=".yaml")

        assert paths == [tmp_path / "sv.yaml"]

    def test_partial_failure_keeps_successful_language(self, writer, tmp_path):
        # a directory in place of fr.yml makes that single target unwritable
        (tmp_path / "fr.yml").mkdir()

        with pytest.raises(LanguageFileWriteErrors) as excinfo:
            writer.write({"sv": {"a.b": "hej"}, "fr": {"a.b": "salut"}}, tmp_path)

        error = excinfo.value
        assert error.failed_languages == ("fr",)
        assert error.written_paths == (tmp_path / "sv.yml",)
        assert isinstance(error.errors[0], LanguageFileWriteError)
        assert error.errors[0].path == tmp_path / "fr.yml"
        assert isinstance(error.errors[0].cause, OSError)
        assert yaml.safe_load((tmp_path / "sv.yml").read_text(encoding="utf-8")) == {"a": {"b": "hej"}}

    def test_all_failures_are_reported(self, writer, tmp_path):
        tables = {"sv": {"a": "x", "a.b": "y"}, "en": {"ok": "fine"}, "de": {"..": "bad"}}

        with pytest.raises(LanguageFileWriteErrors) as excinfo:
            writer.write(tables, tmp_path)

        assert set(excinfo.value.failed_languages) == {"sv", "de"}
        assert excinfo.value.written_paths == (tmp_path / "en.yml",)
        assert "sv" in str(excinfo.value) and "de" in str(excinfo.value)

    def test_invalid_language_code_is_a_write_error(self, writer, tmp_path):
        with pytest.raises(LanguageFileWriteErrors) as excinfo:
            writer.write({"../escape": {"a": "x"}}, tmp_path)

        assert excinfo.value.failed_languages == ("../escape",)
        assert not (tmp_path.parent / "escape.yml").exists()

    def test_failed_write_leaves_previous_file_intact(self, writer, tmp_path):
        (tmp_path / "sv.yml").write_text("a: old\n", encoding="utf-8")

        with patch("lyra_sync.adapters.filesystem.local_filesystem.os.replace", side_effect=OSError("disk full")):
            with pytest.raises(LanguageFileWriteErrors):
                writer.write({"sv": {"a": "new"}}, tmp_path)

        assert (tmp_path / "sv.yml").read_text(encoding="utf-8") == "a: old\n"
        assert sorted(path.name for path in tmp_path.iterdir()) == ["sv.yml"]


    def test_unusable_target_directory_is_reported_per_language(self, writer, tmp_path):
        (tmp_path / "locale").write_text("a file, not a directory", encoding="utf-8")

        with pytest.raises(LanguageFileWriteErrors) as excinfo:
            writer.write({"sv": {"a": "hej"}, "en": {"a": "hi"}}, tmp_path / "locale" / "nested")

        assert excinfo.value.failed_languages == ("sv", "en")
        assert excinfo.value.written_paths == ()


class TestLanguageFileWriterLoad:
    """Reading language files back into flat tables."""

    def test_load_all_languages(self, writer, tmp_path):
        (tmp_path / "sv.yml").write_text("a:\n  b: hej\n", encoding="utf-8")
        (tmp_path / "en.yaml").write_text("a:\n  b: hi\n", encoding="utf-8")
        (tmp_path / "README.md").write_text("ignored", encoding="utf-8")

        assert writer.load(tmp_path) == {"en": {"a.b": "hi"}, "sv": {"a.b": "hej"}}

    def test_load_single_language_missing_file(self, writer, tmp_path):
        assert writer.load(tmp_path, ["sv"]) == {"sv": {}}

    def test_load_missing_directory(self, writer, tmp_path):
        assert writer.load(tmp_path / "absent") == {}

    def test_malformed_file_raises_read_error(self, writer, tmp_path):
        path = tmp_path / "sv.yml"
        path.write_text("a: [unclosed\n", encoding="utf-8")

        with pytest.raises(LanguageFileReadError) as excinfo:
            writer.load(tmp_path)

        assert excinfo.value.language == "sv"
        assert excinfo.value.path == path
        assert isinstance(excinfo.value.cause, yaml.YAMLError)

    def test_typed_values_survive_load_and_write(self, writer, tmp_path):
        path = tmp_path / "sv.yml"
        text = "count: 1\nenabled: true\nitems:\n- a\n- b\n"
        path.write_text(text, encoding="utf-8")

        writer.write(writer.load(tmp_path), tmp_path)

        assert path.read_text(encoding="utf-8") == text

    def test_write_then_load(self, writer, tmp_path):
        tables = {"sv": {"home.title": "Hej", "home.items.one": "Ett"}}

        writer.write(tables, tmp_path)

        assert writer.load(tmp_path) == tables
