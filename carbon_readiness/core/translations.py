from __future__ import annotations
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union
import json

from ..errors import CatalogError
from ..utils.logging import get_logger
from .catalog import DEFAULT_DATA_DIR, DEFAULT_LANGUAGE, normalize_language

logger = get_logger(__name__)

_MISSING = object()


@dataclass(frozen=True)
class TranslationBundle:
    """UI strings, email copy and result texts for one language.

    `fallback` is the default-language bundle consulted when a key is missing.
    """
    language: str
    strings: Mapping[str, Any]
    fallback: Optional["TranslationBundle"] = None


def load_translation_file(path: Union[str, Path]) -> Dict[str, Any]:
    try:
        with open(path, "r", encoding="utf-8") as f:
            raw = json.load(f)
    except (OSError, json.JSONDecodeError) as exc:
        raise CatalogError(f"Cannot load translations {path}: {exc}") from exc
    if not isinstance(raw, dict):
        raise CatalogError(f"Translations {path} must be a JSON object")
    return raw


def load_translations(language: Optional[str] = None, data_dir: Optional[Path] = None) -> TranslationBundle:
    lang = normalize_language(language)
    base = Path(data_dir or DEFAULT_DATA_DIR)
    fallback = None
    if lang != DEFAULT_LANGUAGE:
        fallback = TranslationBundle(
            language=DEFAULT_LANGUAGE,
            strings=load_translation_file(base / f"translations_{DEFAULT_LANGUAGE}.json"),
        )
    return TranslationBundle(
        language=lang,
        strings=load_translation_file(base / f"translations_{lang}.json"),
        fallback=fallback,
    )


def _lookup(strings: Mapping[str, Any], key: str) -> Any:
    node: Any = strings
    for part in key.split("."):
        if not isinstance(node, Mapping) or part not in node:
            return _MISSING
        node = node[part]
    return node


def resolve(bundle: Optional[TranslationBundle], key: str, default: Any = "") -> Any:
    """Look up a dotted key, then in the fallback bundle, then return `default`."""
    current = bundle
    while current is not None:
        value = _lookup(current.strings, key)
        if value is not _MISSING and value is not None:
            return value
        current = current.fallback
    logger.debug("Translation key %s missing, using default", key)
    return default


def format_text(template: str, **values: Any) -> str:
    """Fill `{name}` placeholders; unknown placeholders are left untouched."""
    out = template
    for name, value in values.items():
        out = out.replace("{" + name + "}", str(value))
    return out
