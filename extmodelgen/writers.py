# File: extmodelgen/writers.py
"""
extmodelgen - Document Writers
===============================
Serialise an assembled descriptor document to text.

Two writers share one recursive renderer:

    ``JsonWriter``       JSON-like text (``UNDEFINED`` → ``null``)
    ``ExtDefineWriter``  ``Ext.define("App.model.Book", {...});`` source

``RawLiteral`` values (function sources, remote-method references,
numeric defaults) are written verbatim in both writers, so JSON output
is only strictly valid JSON when the document contains none.

Writers return strings; persisting them is the caller's business.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Optional

from extmodelgen.models import GeneratorConfig, RawLiteral, Undefined
from extmodelgen.utils import is_js_identifier

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("extmodelgen.writers")

_INDENT: str = "  "


# ---------------------------------------------------------------------------
# Base writer
# ---------------------------------------------------------------------------


class DocumentWriter:
    """
    Recursive renderer for ordered ``dict`` / ``list`` documents.

    Subclasses decide how keys are written and how ``UNDEFINED`` appears.
    """

    undefined_literal: str = "null"

    def __init__(self, use_single_quotes: bool = False, debug: bool = True) -> None:
        self.use_single_quotes: bool = use_single_quotes
        self.debug: bool = debug

    @classmethod
    def from_config(cls, config: GeneratorConfig) -> "DocumentWriter":
        return cls(use_single_quotes=config.use_single_quotes, debug=config.debug)

    # -- Scalars ------------------------------------------------------------

    def quote(self, text: str) -> str:
        """Quote and escape *text* as a string literal."""
        encoded: str = json.dumps(text, ensure_ascii=False)
        if not self.use_single_quotes:
            return encoded
        inner: str = encoded[1:-1].replace('\\"', '"').replace("'", "\\'")
        return f"'{inner}'"

    def render_key(self, key: str) -> str:
        return self.quote(key)

    def render_scalar(self, value: Any) -> str:
        if isinstance(value, RawLiteral):
            return str(value)
        if isinstance(value, Undefined):
            return self.undefined_literal
        if value is None:
            return "null"
        if isinstance(value, bool):
            return "true" if value else "false"
        if isinstance(value, (int, float)):
            return json.dumps(value)
        if isinstance(value, str):
            return self.quote(value)
        raise TypeError(f"Cannot render value of type {type(value).__name__}: {value!r}")

    # -- Containers ---------------------------------------------------------

    def render_value(self, value: Any, depth: int = 0) -> str:
        if isinstance(value, dict):
            return self._render_object(value, depth)
        if isinstance(value, (list, tuple)):
            return self._render_array(value, depth)
        return self.render_scalar(value)

    def _render_object(self, obj: Dict[str, Any], depth: int) -> str:
        if not obj:
            return "{}"
        entries: List[str] = [
            f"{self.render_key(key)}:{' ' if self.debug else ''}"
            f"{self.render_value(value, depth + 1)}"
            for key, value in obj.items()
        ]
        return self._wrap("{", "}", entries, depth)

    def _render_array(self, items: Any, depth: int) -> str:
        if not items:
            return "[]"
        entries: List[str] = [self.render_value(item, depth + 1) for item in items]
        return self._wrap("[", "]", entries, depth)

    def _wrap(self, open_: str, close: str, entries: List[str], depth: int) -> str:
        if not self.debug:
            return open_ + ",".join(entries) + close
        inner: str = _INDENT * (depth + 1)
        outer: str = _INDENT * depth
        body: str = ",\n".join(f"{inner}{entry}" for entry in entries)
        return f"{open_}\n{body}\n{outer}{close}"

    # -- Entry point --------------------------------------------------------

    def write(self, document: Dict[str, Any]) -> str:
        raise NotImplementedError


# ---------------------------------------------------------------------------
# Concrete writers
# ---------------------------------------------------------------------------


class JsonWriter(DocumentWriter):
    """Writes the whole document as one JSON-like object."""

    undefined_literal = "null"

    def write(self, document: Dict[str, Any]) -> str:
        text: str = self.render_value(document)
        logger.debug("JsonWriter rendered %d chars.", len(text))
        return text


class ExtDefineWriter(DocumentWriter):
    """
    Writes ``Ext.define(<name>, <body>);`` where the body is the document
    without its ``name`` key.  Keys that are valid identifiers are left
    unquoted.
    """

    undefined_literal = "undefined"

    def render_key(self, key: str) -> str:
        if is_js_identifier(key):
            return key
        return self.quote(key)

    def write(self, document: Dict[str, Any]) -> str:
        name: Optional[str] = document.get("name")
        if not name:
            raise ValueError("Ext.define output needs a document with a 'name'.")
        body: Dict[str, Any] = {k: v for k, v in document.items() if k != "name"}
        text: str = f"Ext.define({self.quote(name)}, {self.render_value(body)});"
        logger.debug("ExtDefineWriter rendered '%s' (%d chars).", name, len(text))
        return text


WRITERS: Dict[str, type] = {
    "json": JsonWriter,
    "extdefine": ExtDefineWriter,
}


def get_writer(kind: str, config: Optional[GeneratorConfig] = None) -> DocumentWriter:
    """Look up a writer by name (``"json"`` or ``"extdefine"``)."""
    try:
        writer_cls = WRITERS[kind.lower()]
    except KeyError:
        raise ValueError(
            f"Unknown writer '{kind}'. Choose from: {', '.join(sorted(WRITERS))}."
        ) from None
    return writer_cls.from_config(config or GeneratorConfig())


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "DocumentWriter",
    "JsonWriter",
    "ExtDefineWriter",
    "WRITERS",
    "get_writer",
]

logger.debug("extmodelgen.writers loaded — %d public symbols.", len(__all__))
