from __future__ import annotations

from typing import Any

import yaml

from lyra_sync.domain.ports import LanguageCodecPort


class YamlLanguageCodec(LanguageCodecPort):
    """YAML text codec for nested translation documents.

    Key order is preserved so a file that is decoded, edited and re-encoded only
    changes where the translations changed.
    """

    def __init__(self, *, width: int = 4096) -> None:
        self._width = width

    def encode(self, document: dict[str, Any]) -> str:
        return yaml.safe_dump(
            document,
            allow_unicode=True,
            sort_keys=False,
            default_flow_style=False,
            width=self._width,
        )

    def decode(self, text: str) -> dict[str, Any]:
        loaded = yaml.safe_load(text)
        if loaded is None:
            return {}
        if not isinstance(loaded, dict):
            raise ValueError("Language file must contain a YAML mapping at the top level")
        return loaded
