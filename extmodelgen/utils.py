# File: extmodelgen/utils.py
"""
extmodelgen - Utility Functions & Helpers
==========================================
Small, cached string helpers used while assembling model descriptors,
native type-name normalisation for type autodetection, and a timing
context manager used by the generation pipeline.

Performance strategy:
- String helpers are decorated with ``@functools.lru_cache(maxsize=None)``;
  the same field and model names are looked up repeatedly while a batch of
  models is generated.
- No external dependencies beyond the Python standard library.
"""

from __future__ import annotations

import functools
import logging
import re
import time
from typing import Any, List, Optional

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("extmodelgen.utils")

# ---------------------------------------------------------------------------
# Pre-compiled regex patterns (compiled once at module load)
# ---------------------------------------------------------------------------

_JS_IDENTIFIER_RE: re.Pattern[str] = re.compile(r"^[A-Za-z_$][A-Za-z0-9_$]*$")


# ---------------------------------------------------------------------------
# Cached string transformation functions
# ---------------------------------------------------------------------------


@functools.lru_cache(maxsize=None)
def capitalize_first(name: str) -> str:
    """
    Upper-case only the first character of *name*.

    Unlike ``str.capitalize`` the rest of the string is left untouched.

    Examples:
        >>> capitalize_first("category")
        'Category'
        >>> capitalize_first("orderItem")
        'OrderItem'
    """
    if not name:
        return ""
    return name[0].upper() + name[1:]


@functools.lru_cache(maxsize=None)
def simple_name(qualified_name: str) -> str:
    """
    Return the last dotted segment of a qualified name.

    Examples:
        >>> simple_name("App.model.Author")
        'Author'
        >>> simple_name("Author")
        'Author'
    """
    return qualified_name.rsplit(".", 1)[-1]


@functools.lru_cache(maxsize=None)
def accessor_name(prefix: str, property_name: str) -> str:
    """Build a getter/setter name, e.g. ``("get", "category") -> "getCategory"``."""
    return f"{prefix}{capitalize_first(property_name)}"


@functools.lru_cache(maxsize=None)
def is_js_identifier(name: str) -> bool:
    """True when *name* can be written as an unquoted JavaScript object key."""
    return bool(_JS_IDENTIFIER_RE.match(name))


def native_type_name(native_type: Any) -> Optional[str]:
    """
    Normalise a native type reference to a qualified type-name string.

    Accepts a Python class (``int``, ``datetime.date``), or a string that
    already names a type (``"java.lang.Long"``, ``"datetime.datetime"``).
    Builtins are reported without the ``builtins.`` prefix.

    Returns ``None`` when nothing usable was supplied.
    """
    if native_type is None:
        return None
    if isinstance(native_type, str):
        stripped: str = native_type.strip()
        return stripped or None
    if isinstance(native_type, type):
        module: str = native_type.__module__
        if module == "builtins":
            return native_type.__qualname__
        return f"{module}.{native_type.__qualname__}"
    logger.debug("Unsupported native type reference: %r", native_type)
    return None


# ---------------------------------------------------------------------------
# Metrics
# ---------------------------------------------------------------------------


def count_lines(content: str) -> int:
    """Count the number of lines in a string. O(n)."""
    if not content:
        return 0
    return content.count("\n") + (1 if not content.endswith("\n") else 0)


# ---------------------------------------------------------------------------
# Timer context manager
# ---------------------------------------------------------------------------


class Timer:
    """
    Simple context-manager timer for profiling generation steps.

    Usage:
        with Timer("assemble models") as t:
            ...
        print(t.elapsed)
    """

    __slots__ = ("label", "start_time", "end_time", "elapsed")

    def __init__(self, label: str = "operation") -> None:
        self.label: str = label
        self.start_time: float = 0.0
        self.end_time: float = 0.0
        self.elapsed: float = 0.0

    def __enter__(self) -> "Timer":
        self.start_time = time.perf_counter()
        return self

    def __exit__(
        self,
        exc_type: Optional[type],
        exc_val: Optional[BaseException],
        exc_tb: Optional[object],
    ) -> None:
        self.end_time = time.perf_counter()
        self.elapsed = self.end_time - self.start_time
        logger.debug(
            "Timer [%s]: %.4f seconds",
            self.label,
            self.elapsed,
        )

    def __repr__(self) -> str:
        return f"<Timer {self.label}: {self.elapsed:.4f}s>"


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "capitalize_first",
    "simple_name",
    "accessor_name",
    "is_js_identifier",
    "native_type_name",
    "count_lines",
    "Timer",
]

logger.debug("extmodelgen.utils loaded — %d public symbols.", len(__all__))
