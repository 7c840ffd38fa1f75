# File: extmodelgen/resolvers.py
"""
extmodelgen - Type & Default Value Resolution
==============================================
Pure functions deciding what a field's ``type`` and ``defaultValue``
look like in the generated descriptor.

Type precedence (highest first):

    1. ``custom_type``   — emitted verbatim
    2. explicit ``type`` — emitted by its canonical name
    3. autodetection     — native type looked up in ``NATIVE_TYPE_SUPPORT``
    4. ``auto``          — always a safe fallback

Native types are matched by qualified name so that metadata collected from
any backend (Python classes, JVM class names, dataframe libraries) goes
through the same table.
"""

from __future__ import annotations

import datetime
import logging
import re
from typing import Any, Dict, FrozenSet, List, Optional, Tuple, Union

from extmodelgen.models import UNDEFINED, ModelType, RawLiteral, Undefined
from extmodelgen.utils import native_type_name

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("extmodelgen.resolvers")

DEFAULTVALUE_UNDEFINED: str = "undefined"

# ---------------------------------------------------------------------------
# Supports table: type-kind → qualified native type names
# ---------------------------------------------------------------------------

_INTEGER_NAMES: FrozenSet[str] = frozenset(
    {
        "int",
        "byte", "short", "long",
        "java.lang.Byte", "java.lang.Short", "java.lang.Integer", "java.lang.Long",
        "java.math.BigInteger",
        "numpy.int8", "numpy.int16", "numpy.int32", "numpy.int64",
        "numpy.uint8", "numpy.uint16", "numpy.uint32", "numpy.uint64",
    }
)

_FLOAT_NAMES: FrozenSet[str] = frozenset(
    {
        "float",
        "decimal.Decimal",
        "double",
        "java.lang.Float", "java.lang.Double",
        "java.math.BigDecimal",
        "numpy.float16", "numpy.float32", "numpy.float64",
    }
)

_STRING_NAMES: FrozenSet[str] = frozenset({"str", "java.lang.String"})

_BOOLEAN_NAMES: FrozenSet[str] = frozenset(
    {"bool", "boolean", "java.lang.Boolean", "numpy.bool_"}
)

_DATE_NAMES: FrozenSet[str] = frozenset(
    {
        "datetime.date",
        "datetime.datetime",
        "java.util.Date",
        "java.sql.Date",
        "java.sql.Timestamp",
        "java.util.Calendar",
        "java.util.GregorianCalendar",
        "org.joda.time.DateTime",
        "org.joda.time.LocalDate",
        "org.joda.time.ReadableDateTime",
        "java.time.LocalDate",
        "java.time.LocalDateTime",
        "java.time.ZonedDateTime",
        "java.time.OffsetDateTime",
        "pandas.Timestamp",
        "pandas._libs.tslibs.timestamps.Timestamp",
        "numpy.datetime64",
        "pendulum.DateTime",
        "pendulum.Date",
        "pendulum.datetime.DateTime",
        "pendulum.date.Date",
        "arrow.Arrow",
        "arrow.arrow.Arrow",
    }
)

# Checked in this order; FLOAT precedes NUMBER so floats resolve to "float".
NATIVE_TYPE_SUPPORT: Tuple[Tuple[ModelType, FrozenSet[str]], ...] = (
    (ModelType.INTEGER, _INTEGER_NAMES),
    (ModelType.FLOAT, _FLOAT_NAMES),
    (ModelType.NUMBER, _FLOAT_NAMES),
    (ModelType.STRING, _STRING_NAMES),
    (ModelType.DATE, _DATE_NAMES),
    (ModelType.BOOLEAN, _BOOLEAN_NAMES),
)


def supports(model_type: ModelType, native_type: Any) -> bool:
    """
    True when *model_type* can represent values of *native_type*.

    Names are matched exactly (so ``bool`` never counts as an integer);
    Python classes additionally match DATE when they subclass
    ``datetime.date``.
    """
    name: Optional[str] = native_type_name(native_type)
    if name is None:
        return False
    for kind, names in NATIVE_TYPE_SUPPORT:
        if kind is model_type and name in names:
            return True
    if (
        model_type is ModelType.DATE
        and isinstance(native_type, type)
        and issubclass(native_type, datetime.date)
    ):
        return True
    return False


def detect_type(native_type: Any) -> ModelType:
    """Map a native type to its model type; ``AUTO`` when nothing matches."""
    for kind, _names in NATIVE_TYPE_SUPPORT:
        if supports(kind, native_type):
            return kind
    logger.debug("No model type supports native type %r; using auto.", native_type)
    return ModelType.AUTO


# ---------------------------------------------------------------------------
# Resolution entry points
# ---------------------------------------------------------------------------


def resolve_type(
    explicit_type: Optional[ModelType],
    custom_type: str,
    autodetect_enabled: bool,
    native_type: Any,
) -> str:
    """
    Return the emitted type name of a field.

    Total over its inputs: unknown or missing native types resolve to
    ``"auto"``, nothing is ever raised.
    """
    if custom_type:
        return custom_type
    if explicit_type is not None and explicit_type is not ModelType.NOT_SPECIFIED:
        return explicit_type.value
    if autodetect_enabled:
        return detect_type(native_type).value
    return ModelType.AUTO.value


def resolve_default(default_value: str) -> Union[None, Undefined, str]:
    """
    Return the emitted default value.

    - ``""``          → ``None`` (the property is omitted)
    - ``"undefined"`` → ``UNDEFINED`` (explicitly no default)
    - anything else   → the string itself
    """
    if not default_value:
        return None
    if default_value == DEFAULTVALUE_UNDEFINED:
        return UNDEFINED
    return default_value


_NUMBER_LITERAL_RE: re.Pattern[str] = re.compile(r"-?\d+(\.\d+)?")
_BOOLEAN_LITERAL_RE: re.Pattern[str] = re.compile(r"true|false")

# Emitted type → pattern a default must fully match to be written unquoted.
_UNQUOTED_DEFAULT_PATTERNS: Dict[str, re.Pattern[str]] = {
    ModelType.INTEGER.value: _NUMBER_LITERAL_RE,
    ModelType.FLOAT.value: _NUMBER_LITERAL_RE,
    ModelType.NUMBER.value: _NUMBER_LITERAL_RE,
    ModelType.BOOLEAN.value: _BOOLEAN_LITERAL_RE,
}


def expects_literal_default(emitted_type: str) -> bool:
    """True when defaults of *emitted_type* are written as unquoted literals."""
    return emitted_type in _UNQUOTED_DEFAULT_PATTERNS


def is_literal_default(default_value: str, emitted_type: str) -> bool:
    """True when *default_value* is a valid unquoted literal for *emitted_type*."""
    pattern: Optional[re.Pattern[str]] = _UNQUOTED_DEFAULT_PATTERNS.get(emitted_type)
    return pattern is not None and pattern.fullmatch(default_value) is not None


def typed_default(default_value: str, emitted_type: str) -> Union[None, Undefined, str]:
    """
    Resolve *default_value* and mark it raw when it is a number literal on a
    numeric field or ``true``/``false`` on a boolean field, so that writers
    do not quote it. Any other value stays a quoted string.
    """
    resolved: Union[None, Undefined, str] = resolve_default(default_value)
    if isinstance(resolved, str) and is_literal_default(resolved, emitted_type):
        return RawLiteral(resolved)
    return resolved


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "DEFAULTVALUE_UNDEFINED",
    "NATIVE_TYPE_SUPPORT",
    "supports",
    "detect_type",
    "resolve_type",
    "resolve_default",
    "typed_default",
    "expects_literal_default",
    "is_literal_default",
]

logger.debug("extmodelgen.resolvers loaded — %d public symbols.", len(__all__))
