from __future__ import annotations
"""Conversion between flat dotted translation keys and nested documents."""

from typing import Any, Mapping

from .errors import KeyConflictError


def flatten(document: Mapping[str, Any], parent_key: str = "") -> dict[str, Any]:
    """Flatten a nested mapping into ``{"a.b.c": value}`` form.

    Leaf values are kept as decoded (strings, numbers, booleans, ``None`` and
    lists), so a file that is loaded and written back encodes to the same
    document. Empty mappings are kept as leaves for the same reason.
    """
    result: dict[str, Any] = {}
    for key, value in document.items():
        full_key = f"{parent_key}.{key}" if parent_key else str(key)
        if isinstance(value, Mapping) and value:
            result.update(flatten(value, full_key))
        else:
            result[full_key] = value
    return result


def unflatten(flat: Mapping[str, Any]) -> dict[str, Any]:
    """Inverse of `flatten`.

    Raises:
        KeyConflictError: A key is both a leaf and a parent, or has an empty segment.
    """
    root: dict[str, Any] = {}
    for dotted_key, value in flat.items():
        parts = dotted_key.split(".")
        if any(not part for part in parts):
            raise KeyConflictError(f"Invalid translation key '{dotted_key}': empty path segment")

        node = root
        for depth, part in enumerate(parts[:-1]):
            child = node.setdefault(part, {})
            if not isinstance(child, dict):
                prefix = ".".join(parts[: depth + 1])
                raise KeyConflictError(
                    f"Translation key '{dotted_key}' conflicts with leaf key '{prefix}'"
                )
            node = child

        leaf = parts[-1]
        existing = node.get(leaf)
        if isinstance(existing, dict):
            # an empty section next to its own children adds nothing
            if _is_empty_mapping(value):
                continue
            raise KeyConflictError(f"Translation key '{dotted_key}' conflicts with nested keys below it")
        node[leaf] = {} if _is_empty_mapping(value) else value
    return root


def _is_empty_mapping(value: Any) -> bool:
    return isinstance(value, Mapping) and not value
