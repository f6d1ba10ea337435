"""Unit tests for dotted-key flattening and the YAML language codec."""
import pytest
import yaml

from lyra_sync.adapters.codec.yaml_codec import YamlLanguageCodec
from lyra_sync.domain.errors import KeyConflictError
from lyra_sync.domain.language_codec import flatten, unflatten


class TestFlatten:
    """Nested documents become dotted keys with their decoded leaf values."""

    def test_nested_keys_are_joined_with_dots(self):
        document = {"a": {"b": {"c": "text"}}, "title": "Hello"}

        assert flatten(document) == {"a.b.c": "text", "title": "Hello"}

    def test_scalars_keep_their_type(self):
        document = {"count": 3, "enabled": True, "missing": None}

        assert flatten(document) == {"count": 3, "enabled": True, "missing": None}

    def test_lists_stay_a_single_leaf(self):
        assert flatten({"days": ["mon", "tue"]}) == {"days": ["mon", "tue"]}

    def test_empty_mapping_is_kept_as_leaf(self):
        assert flatten({"section": {}, "a": {"b": "x"}}) == {"section": {}, "a.b": "x"}


class TestUnflatten:
    """Dotted keys become nested mappings."""

    def test_scenario_single_key(self):
        assert unflatten({"a.b": "hej"}) == {"a": {"b": "hej"}}

    def test_siblings_share_parent(self):
        flat = {"menu.file.open": "Open", "menu.file.close": "Close", "menu.edit": "Edit"}

        assert unflatten(flat) == {"menu": {"file": {"open": "Open", "close": "Close"}, "edit": "Edit"}}

    def test_leaf_then_child_conflict(self):
        with pytest.raises(KeyConflictError, match="conflicts with leaf key 'a'"):
            unflatten({"a": "x", "a.b": "y"})

    def test_child_then_leaf_conflict(self):
        with pytest.raises(KeyConflictError, match="nested keys"):
            unflatten({"a.b": "y", "a": "x"})

    def test_empty_segment_rejected(self):
        with pytest.raises(KeyConflictError, match="empty path segment"):
            unflatten({"a..b": "x"})

    def test_empty_section_merges_with_children(self):
        assert unflatten({"a": {}, "a.b": "x"}) == {"a": {"b": "x"}}
        assert unflatten({"a.b": "x", "a": {}}) == {"a": {"b": "x"}}

    @pytest.mark.parametrize(
        "flat",
        [
            {},
            {"a.b": "hej"},
            {"home.title": "Välkommen", "home.body.intro": "Hej {name}!", "footer": ""},
            {"quotes": "it's \"quoted\"", "multi.line": "one\ntwo", "colon": "key: value"},
        ],
    )
    def test_round_trip(self, flat):
        assert flatten(unflatten(flat)) == flat


class TestYamlLanguageCodec:
    """Text encoding of nested translation documents."""

    def setup_method(self):
        self.codec = YamlLanguageCodec()

    def test_encode_writes_nested_block_yaml(self):
        text = self.codec.encode({"a": {"b": "hej"}})

        assert text == "a:\n  b: hej\n"

    def test_encode_preserves_key_order(self):
        text = self.codec.encode({"zeta": "z", "alpha": "a"})

        assert text.index("zeta") < text.index("alpha")

    def test_encode_keeps_unicode_readable(self):
        assert "Välkommen" in self.codec.encode({"title": "Välkommen"})

    @pytest.mark.parametrize(
        "document",
        [
            {"a": {"b": "hej"}},
            {"yes": "no", "number": "42", "empty": "", "nested": {"null": "null", "bool": "true"}},
            {"text": "line one\nline two", "special": "#not a comment", "lead": " padded "},
        ],
    )
    def test_round_trip(self, document):
        assert self.codec.decode(self.codec.encode(document)) == document

    def test_decode_empty_document(self):
        assert self.codec.decode("") == {}

    def test_decode_rejects_non_mapping(self):
        with pytest.raises(ValueError, match="YAML mapping"):
            self.codec.decode("- a\n- b\n")

    def test_decode_invalid_yaml_raises(self):
        with pytest.raises(yaml.YAMLError):
            self.codec.decode("a: [unclosed\n")

    def test_loaded_document_encodes_to_identical_text(self):
        text = "count: 1\nenabled: true\nitems:\n- a\n- b\nempty: {}\nnothing: null\nhome:\n  title: Hej\n"

        document = unflatten(flatten(self.codec.decode(text)))

        assert self.codec.encode(document) == text
