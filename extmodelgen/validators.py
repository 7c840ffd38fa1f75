# File: extmodelgen/validators.py
"""
extmodelgen - Model Metadata Validators
========================================
This module provides a **pure-function validation pipeline** that operates
on the Pydantic V2 models defined in ``extmodelgen.models``.

Pydantic's built-in validators handle per-field structural correctness
(types, required keys, enum values).  This module adds **semantic
validation**: validator parameter well-formedness, conflicting reference
ownership, conflicting nullability flags, settings the chosen output format
ignores, and more.

Nothing in here aborts generation.  Every finding is recorded in a
``ValidationResult`` that travels next to the assembled document; the
caller decides whether warnings should block overall success.

Usage by downstream modules:
    from extmodelgen.validators import validate_model
    result = validate_model(model_spec, generator_config)
    if result.has_errors:
        ...
"""

from __future__ import annotations

import logging
import re
from typing import Any, Callable, Dict, List, Optional, Set, Tuple

from extmodelgen.models import (
    GeneratorConfig,
    ModelAssociationType,
    ModelSpec,
    ModelType,
    ModelValidationType,
    OutputFormat,
    ValidationParameter,
    ValidationSpec,
)
from extmodelgen.resolvers import (
    DEFAULTVALUE_UNDEFINED,
    expects_literal_default,
    is_literal_default,
    resolve_type,
)

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("extmodelgen.validators")

# ---------------------------------------------------------------------------
# Validation result container
# ---------------------------------------------------------------------------


class ValidationError:
    """Lightweight issue descriptor (no Pydantic overhead)."""

    __slots__ = ("level", "code", "message", "context")

    def __init__(
        self,
        level: str,
        code: str,
        message: str,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.level: str = level  # "error" | "warning" | "info"
        self.code: str = code
        self.message: str = message
        self.context: Dict[str, Any] = context or {}

    @property
    def is_error(self) -> bool:
        return self.level == "error"

    @property
    def is_warning(self) -> bool:
        return self.level == "warning"

    def __repr__(self) -> str:
        return f"[{self.level.upper()}] {self.code}: {self.message}"

    def __str__(self) -> str:
        return self.__repr__()


class ValidationResult:
    """
    Accumulates ``ValidationError`` instances produced by the pipeline.

    Provides O(1) access to counts and O(n) filtering.
    """

    __slots__ = ("_items",)

    def __init__(self) -> None:
        self._items: List[ValidationError] = []

    # -- Mutation -----------------------------------------------------------

    def add_error(
        self,
        code: str,
        message: str,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        self._items.append(ValidationError("error", code, message, context))

    def add_warning(
        self,
        code: str,
        message: str,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        self._items.append(ValidationError("warning", code, message, context))

    def add_info(
        self,
        code: str,
        message: str,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        self._items.append(ValidationError("info", code, message, context))

    def merge(self, other: "ValidationResult") -> None:
        """Merge another result into this one. O(k) where k = len(other)."""
        self._items.extend(other._items)

    # -- Query --------------------------------------------------------------

    @property
    def errors(self) -> List[ValidationError]:
        return [e for e in self._items if e.is_error]

    @property
    def warnings(self) -> List[ValidationError]:
        return [e for e in self._items if e.is_warning]

    @property
    def has_errors(self) -> bool:
        return any(e.is_error for e in self._items)

    @property
    def has_warnings(self) -> bool:
        return any(e.is_warning for e in self._items)

    @property
    def error_count(self) -> int:
        return sum(1 for e in self._items if e.is_error)

    @property
    def warning_count(self) -> int:
        return sum(1 for e in self._items if e.is_warning)

    @property
    def is_valid(self) -> bool:
        return not self.has_errors

    def codes(self) -> List[str]:
        return [e.code for e in self._items]

    def summary(self) -> str:
        return (
            f"Validation: {self.error_count} error(s), "
            f"{self.warning_count} warning(s), "
            f"{len(self._items)} total item(s)."
        )

    def __repr__(self) -> str:
        return f"<ValidationResult {self.summary()}>"

    def __bool__(self) -> bool:
        """Truthy when there are NO errors (i.e. valid)."""
        return self.is_valid

    def __len__(self) -> int:
        return len(self._items)

    def format_report(self, include_info: bool = False) -> str:
        """Human-readable multi-line report."""
        lines: List[str] = [self.summary(), ""]
        for item in self._items:
            if not include_info and item.level == "info":
                continue
            prefix: str = {
                "error": "✗",
                "warning": "⚠",
                "info": "ℹ",
            }.get(item.level, "•")
            lines.append(f"  {prefix} [{item.code}] {item.message}")
            if item.context:
                for k, v in item.context.items():
                    lines.append(f"       {k}: {v}")
        return "\n".join(lines)


# ---------------------------------------------------------------------------
# Regex patterns (compiled once at module load)
# ---------------------------------------------------------------------------

_DIGITS_RE: re.Pattern[str] = re.compile(r"\d+")
_DECIMAL_RE: re.Pattern[str] = re.compile(r"\d+(\.\d+)?")


# ---------------------------------------------------------------------------
# Validator well-formedness table
# ---------------------------------------------------------------------------

# A check returns None when the parameters are acceptable, else the reason.
_ParameterCheck = Callable[[List[ValidationParameter]], Optional[str]]


def _has(parameters: List[ValidationParameter], name: str) -> bool:
    return any(p.name == name for p in parameters)


def _always_valid(parameters: List[ValidationParameter]) -> Optional[str]:
    return None


def _check_generic(parameters: List[ValidationParameter]) -> Optional[str]:
    if not _has(parameters, "type"):
        return "a parameter named 'type' is required"
    return None


def _check_digits(parameters: List[ValidationParameter]) -> Optional[str]:
    if len(parameters) != 2 or not (_has(parameters, "integer") and _has(parameters, "fraction")):
        return "exactly the parameters 'integer' and 'fraction' are required"
    for p in parameters:
        if not _DIGITS_RE.fullmatch(p.value):
            return f"parameter '{p.name}' must be a non-negative integer, got '{p.value}'"
    return None


def _check_format(parameters: List[ValidationParameter]) -> Optional[str]:
    if len(parameters) != 1 or parameters[0].name != "matcher":
        return "exactly one parameter named 'matcher' is required"
    if not parameters[0].value.strip():
        return "parameter 'matcher' must not be blank"
    return None


def _check_inclusion(parameters: List[ValidationParameter]) -> Optional[str]:
    if len(parameters) != 1 or parameters[0].name != "list":
        return "exactly one parameter named 'list' is required"
    return None


def _bounds_check(pattern: re.Pattern[str], what: str) -> _ParameterCheck:
    def check(parameters: List[ValidationParameter]) -> Optional[str]:
        if len(parameters) not in (1, 2):
            return "one or two parameters ('min' and/or 'max') are required"
        if not (_has(parameters, "min") or _has(parameters, "max")):
            return "at least one of 'min' or 'max' is required"
        for p in parameters:
            if not pattern.fullmatch(p.value):
                return f"parameter '{p.name}' must be {what}, got '{p.value}'"
        return None

    return check


PARAMETER_CHECKS: Dict[ModelValidationType, _ParameterCheck] = {
    ModelValidationType.GENERIC: _check_generic,
    ModelValidationType.CREDITCARDNUMBER: _always_valid,
    ModelValidationType.DIGITS: _check_digits,
    ModelValidationType.EMAIL: _always_valid,
    ModelValidationType.FORMAT: _check_format,
    ModelValidationType.FUTURE: _always_valid,
    ModelValidationType.INCLUSION: _check_inclusion,
    ModelValidationType.LENGTH: _bounds_check(_DIGITS_RE, "a non-negative integer"),
    ModelValidationType.NOTBLANK: _always_valid,
    ModelValidationType.PAST: _always_valid,
    ModelValidationType.PRESENCE: _always_valid,
    ModelValidationType.RANGE: _bounds_check(_DECIMAL_RE, "a non-negative number"),
}


def malformed_reason(validation: ValidationSpec) -> Optional[str]:
    """Why *validation*'s parameters break its kind's contract; ``None`` if they don't."""
    return PARAMETER_CHECKS[validation.type](validation.parameters)


def is_well_formed(validation: ValidationSpec) -> bool:
    return malformed_reason(validation) is None


# Keys every emitted validator entry owns; GENERIC reads its "type" parameter.
RESERVED_PARAMETER_NAMES: Tuple[str, ...] = ("type", "field")


def reserved_parameters(validation: ValidationSpec) -> List[str]:
    """Names of *validation*'s parameters that would clash with the entry's own keys."""
    return [
        p.name
        for p in validation.parameters
        if p.name in RESERVED_PARAMETER_NAMES
        and not (validation.type is ModelValidationType.GENERIC and p.name == "type")
    ]


# ---------------------------------------------------------------------------
# Individual validation functions (each is O(n) or better)
# ---------------------------------------------------------------------------


def validate_field_names(model: ModelSpec) -> ValidationResult:
    """Flag field names declared more than once."""
    result: ValidationResult = ValidationResult()
    seen: Set[str] = set()

    for fld in model.fields:
        if fld.name in seen:
            result.add_warning(
                "DUPLICATE_FIELD_NAME",
                f"Field '{fld.name}' is declared more than once in model "
                f"'{model.resolved_name}'.",
                {"model": model.resolved_name, "field": fld.name},
            )
        seen.add(fld.name)

    return result


def validate_references(model: ModelSpec) -> ValidationResult:
    """
    A reference names exactly one of type/child/parent.  Conflicts are
    configuration errors; the assembler leaves the reference out.
    """
    result: ValidationResult = ValidationResult()

    for fld in model.fields:
        ref = fld.reference
        if ref is None or not ref.has_ownership_conflict:
            continue
        keys: List[str] = [k for k, _ in ref.targets]
        result.add_error(
            "REFERENCE_OWNERSHIP_CONFLICT",
            f"Reference on field '{fld.name}' sets {', '.join(keys)}; "
            f"only one of type, child or parent may be set. "
            f"The reference is skipped.",
            {"model": model.resolved_name, "field": fld.name, "keys": keys},
        )

    return result


def validate_nullability(model: ModelSpec) -> ValidationResult:
    """useNull and allowNull are synonyms and must agree."""
    result: ValidationResult = ValidationResult()

    for fld in model.fields:
        if fld.nullability_conflict:
            result.add_error(
                "NULLABILITY_CONFLICT",
                f"Field '{fld.name}' sets useNull={fld.use_null} but "
                f"allowNull={fld.allow_null}. The nullability flag is skipped.",
                {"model": model.resolved_name, "field": fld.name},
            )

    return result


def validate_date_formats(model: ModelSpec, config: GeneratorConfig) -> ValidationResult:
    """dateFormat only applies to fields that resolve to ``date``."""
    result: ValidationResult = ValidationResult()

    for fld in model.fields:
        if not fld.date_format:
            continue
        emitted: str = resolve_type(
            fld.type, fld.custom_type, config.autodetect_types, fld.native_type
        )
        if emitted != ModelType.DATE.value:
            result.add_warning(
                "DATE_FORMAT_IGNORED",
                f"Field '{fld.name}' has a dateFormat but resolves to type "
                f"'{emitted}'; the dateFormat is not emitted.",
                {"model": model.resolved_name, "field": fld.name, "type": emitted},
            )

    return result


def validate_default_values(model: ModelSpec, config: GeneratorConfig) -> ValidationResult:
    """Defaults on numeric and boolean fields must be literals of that type."""
    result: ValidationResult = ValidationResult()

    for fld in model.fields:
        if not fld.default_value or fld.default_value == DEFAULTVALUE_UNDEFINED:
            continue
        emitted: str = resolve_type(
            fld.type, fld.custom_type, config.autodetect_types, fld.native_type
        )
        if expects_literal_default(emitted) and not is_literal_default(fld.default_value, emitted):
            result.add_warning(
                "INVALID_DEFAULT_VALUE",
                f"Field '{fld.name}' of type '{emitted}' has default "
                f"'{fld.default_value}', which is not a {emitted} literal; "
                f"it is emitted as a quoted string.",
                {"model": model.resolved_name, "field": fld.name, "type": emitted},
            )

    return result


def validate_associations(model: ModelSpec) -> ValidationResult:
    """Flag association settings that the association kind does not use."""
    result: ValidationResult = ValidationResult()

    for assoc in model.associations:
        ctx: Dict[str, Any] = {
            "model": model.resolved_name,
            "property": assoc.property_name,
            "type": assoc.type.value,
        }
        if assoc.auto_load and assoc.type is not ModelAssociationType.HAS_MANY:
            result.add_warning(
                "AUTOLOAD_IGNORED",
                f"Association '{assoc.property_name}' sets autoLoad, which only "
                f"hasMany associations support.",
                ctx,
            )
        if (assoc.getter_name or assoc.setter_name) and not assoc.is_single_valued:
            result.add_warning(
                "ACCESSOR_IGNORED",
                f"Association '{assoc.property_name}' sets getterName/setterName, "
                f"which only belongsTo and hasOne associations support.",
                ctx,
            )

    return result


def validate_proxy_settings(model: ModelSpec, config: GeneratorConfig) -> ValidationResult:
    """Reader/writer settings that cannot be emitted for this model or format."""
    result: ValidationResult = ValidationResult()
    ctx: Dict[str, Any] = {"model": model.resolved_name}

    if not model.has_proxy and (model.has_reader_settings or model.has_writer_settings):
        result.add_warning(
            "PROXY_SETTINGS_IGNORED",
            f"Model '{model.resolved_name}' has reader/writer settings but no "
            f"remote method, reader, writer, paging or disablePagingParameters, "
            f"so no proxy is generated.",
            ctx,
        )

    if model.root_property and model.paging:
        result.add_info(
            "ROOT_PROPERTY_OVERRIDES_PAGING",
            f"Model '{model.resolved_name}' sets both paging and rootProperty; "
            f"rootProperty '{model.root_property}' is used.",
            ctx,
        )

    has_data_options: bool = (
        model.all_data_options is not None or model.partial_data_options is not None
    )
    if has_data_options and config.output_format is not OutputFormat.EXTJS5:
        result.add_warning(
            "DATA_OPTIONS_IGNORED",
            f"allDataOptions/partialDataOptions are only emitted for "
            f"{OutputFormat.EXTJS5.value}, not {config.output_format.value}.",
            ctx,
        )

    return result


def validate_validations(model: ModelSpec) -> ValidationResult:
    """Check each validator against its kind's parameter contract."""
    result: ValidationResult = ValidationResult()
    field_names: Set[str] = {f.name for f in model.fields}

    for validation in model.validations:
        ctx: Dict[str, Any] = {
            "model": model.resolved_name,
            "field": validation.field,
            "validator": validation.type.name,
        }
        reason: Optional[str] = malformed_reason(validation)
        if reason is not None:
            result.add_warning(
                "MALFORMED_VALIDATOR",
                f"{validation.type.name} validator on '{validation.field}': {reason}.",
                {**ctx, "reason": reason},
            )
        for name in reserved_parameters(validation):
            clash: str = f"parameter '{name}' uses a reserved name and is not emitted"
            result.add_warning(
                "MALFORMED_VALIDATOR",
                f"{validation.type.name} validator on '{validation.field}': {clash}.",
                {**ctx, "reason": clash},
            )
        if validation.field not in field_names:
            result.add_warning(
                "VALIDATOR_UNKNOWN_FIELD",
                f"{validation.type.name} validator targets '{validation.field}', "
                f"which is not a field of model '{model.resolved_name}'.",
                ctx,
            )

    return result


# ---------------------------------------------------------------------------
# Composite validation orchestrator
# ---------------------------------------------------------------------------


def validate_model(model: ModelSpec, config: GeneratorConfig) -> ValidationResult:
    """
    **Master validation entry point.**

    Runs every model-level validator and merges their findings.

    Complexity: O(F + A + V) for fields, associations and validators.
    """
    result: ValidationResult = ValidationResult()

    model_validators: List[Callable[[ModelSpec], ValidationResult]] = [
        validate_field_names,
        validate_references,
        validate_nullability,
        validate_associations,
        validate_validations,
    ]
    for validator_fn in model_validators:
        logger.debug("Running validator: %s", validator_fn.__name__)
        result.merge(validator_fn(model))

    # Config-dependent checks
    result.merge(validate_date_formats(model, config))
    result.merge(validate_default_values(model, config))
    result.merge(validate_proxy_settings(model, config))

    if result.has_errors:
        logger.warning(
            "Model '%s' has %d configuration error(s). %s",
            model.resolved_name,
            result.error_count,
            result.summary(),
        )
    else:
        logger.debug("Model '%s' validated. %s", model.resolved_name, result.summary())

    return result


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "ValidationError",
    "ValidationResult",
    "PARAMETER_CHECKS",
    "malformed_reason",
    "is_well_formed",
    "RESERVED_PARAMETER_NAMES",
    "reserved_parameters",
    "validate_field_names",
    "validate_references",
    "validate_nullability",
    "validate_date_formats",
    "validate_default_values",
    "validate_associations",
    "validate_proxy_settings",
    "validate_validations",
    "validate_model",
]

logger.debug("extmodelgen.validators loaded — %d public symbols.", len(__all__))
