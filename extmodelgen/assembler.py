# File: extmodelgen/assembler.py
"""
extmodelgen - Descriptor Assembly Engine
=========================================
Turns a ``ModelSpec`` plus a ``GeneratorConfig`` into the nested, ordered
document describing a client-side data model:

    1. model header (name, extend, id / version / client-id properties)
    2. proxy block with nested reader / writer sub-blocks
    3. fields
    4. associations
    5. validators, filtered by the inclusion policy

**Contract:**
    - Output is plain ``dict`` / ``list`` built in insertion order.
    - Assembly is pure: the same inputs give an equal document every time.
    - No text escaping happens here; that is the writers' job.
    - Missing optional metadata never raises; problems travel next to the
      document as ``ValidationResult`` issues.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple

from extmodelgen.models import (
    UNDEFINED,
    AssociationSpec,
    FieldSpec,
    GeneratorConfig,
    IncludeValidation,
    ModelAssociationType,
    ModelSpec,
    ModelType,
    ModelValidationType,
    OutputFormat,
    RawLiteral,
    ReferenceSpec,
    ValidationSpec,
)
from extmodelgen.resolvers import resolve_type, typed_default
from extmodelgen.utils import accessor_name, simple_name
from extmodelgen.validators import RESERVED_PARAMETER_NAMES, ValidationResult, validate_model

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("extmodelgen.assembler")

# ---------------------------------------------------------------------------
# Types & constants
# ---------------------------------------------------------------------------

Document = Dict[str, Any]
ModelNameResolver = Callable[[str], str]

_PAGING_PARAMETERS: Tuple[str, ...] = ("pageParam", "startParam", "limitParam")

# Value written for each paging parameter when they are disabled.
_DISABLED_PAGING_VALUE: Dict[OutputFormat, Any] = {
    OutputFormat.EXTJS4: UNDEFINED,
    OutputFormat.EXTJS5: "",
    OutputFormat.TOUCH2: False,
}

_PAGING_ROOT: str = "records"

_NUMBER_RE: re.Pattern[str] = re.compile(r"-?\d+(\.\d+)?")


def identity_resolver(model_type: str) -> str:
    """Default model-name resolver: a model is named by its type."""
    return model_type


# ---------------------------------------------------------------------------
# Reference & association blocks
# ---------------------------------------------------------------------------


def assemble_reference(reference: ReferenceSpec) -> Optional[Document]:
    """
    Build the ``reference`` block of a field.

    Returns ``None`` when none of type/child/parent is set, and also when
    more than one is set (an ownership conflict; see
    ``validators.validate_references``).
    """
    targets = reference.targets
    if len(targets) != 1:
        return None

    key, value = targets[0]
    block: Document = {key: value}
    if reference.association:
        block["association"] = reference.association
    if reference.role:
        block["role"] = reference.role
    if reference.inverse:
        block["inverse"] = reference.inverse
    return block


def default_foreign_key(association: AssociationSpec, owner_model_name: str) -> str:
    """
    hasMany keys point back at the owner (``author_id`` for ``App.model.Author``);
    belongsTo / hasOne keys are named after the property (``category_id``).
    """
    if association.type is ModelAssociationType.HAS_MANY:
        return f"{simple_name(owner_model_name).lower()}_id"
    return f"{association.property_name}_id"


def assemble_association(
    association: AssociationSpec,
    owner_model_name: str,
    model_name_resolver: Optional[ModelNameResolver] = None,
) -> Document:
    """Build one entry of the ``associations`` list."""
    resolver: ModelNameResolver = model_name_resolver or identity_resolver

    block: Document = {
        "type": association.type.value,
        "model": resolver(association.model),
        "associationKey": association.property_name,
        "foreignKey": association.foreign_key
        or default_foreign_key(association, owner_model_name),
    }
    if association.primary_key:
        block["primaryKey"] = association.primary_key

    if association.type is ModelAssociationType.HAS_MANY:
        if association.auto_load:
            block["autoLoad"] = True
        block["name"] = association.name or association.property_name
    else:
        block["setterName"] = association.setter_name or accessor_name(
            "set", association.property_name
        )
        block["getterName"] = association.getter_name or accessor_name(
            "get", association.property_name
        )

    if association.instance_name:
        block["instanceName"] = association.instance_name
    return block


# ---------------------------------------------------------------------------
# Validator blocks
# ---------------------------------------------------------------------------


def _parameter_value(kind: ModelValidationType, name: str, value: str) -> Any:
    """
    Parameter values are kept as written, except: inclusion lists become
    arrays, format matchers are regex literals, numbers and booleans are
    unquoted.
    """
    if kind is ModelValidationType.INCLUSION and name == "list":
        return [item.strip() for item in value.split(",") if item.strip()]
    if kind is ModelValidationType.FORMAT and name == "matcher":
        return RawLiteral(value)
    if value in ("true", "false") or _NUMBER_RE.fullmatch(value):
        return RawLiteral(value)
    return value


def validation_type_name(validation: ValidationSpec) -> str:
    """The emitted validator type; GENERIC takes it from its ``type`` parameter."""
    if validation.type is ModelValidationType.GENERIC:
        for param in validation.parameters:
            if param.name == "type":
                return param.value
    return validation.type.value


def assemble_validation(validation: ValidationSpec) -> Document:
    """
    ``{type, <param>: <value>, ...}`` without the target field.

    Parameters named ``type`` or ``field`` never overwrite the entry's own keys.
    """
    block: Document = {"type": validation_type_name(validation)}
    for param in validation.parameters:
        if param.name in RESERVED_PARAMETER_NAMES:
            continue
        block[param.name] = _parameter_value(validation.type, param.name, param.value)
    return block


def included_validations(
    validations: List[ValidationSpec], policy: IncludeValidation
) -> List[ValidationSpec]:
    if policy is IncludeValidation.NONE:
        return []
    if policy is IncludeValidation.BUILTIN:
        return [v for v in validations if v.type.builtin]
    return list(validations)


# ---------------------------------------------------------------------------
# Assembly result
# ---------------------------------------------------------------------------


@dataclass(slots=True)
class AssemblyResult:
    """The assembled document and the issues found while producing it."""

    model_name: str
    document: Document
    issues: ValidationResult

    @property
    def has_errors(self) -> bool:
        return self.issues.has_errors

    @property
    def has_warnings(self) -> bool:
        return self.issues.has_warnings


# ---------------------------------------------------------------------------
# ModelAssembler
# ---------------------------------------------------------------------------


class ModelAssembler:
    """
    Stateless descriptor builder.

    One instance can assemble any number of models for the same
    configuration; it keeps no mutable state between calls.
    """

    def __init__(
        self,
        config: Optional[GeneratorConfig] = None,
        model_name_resolver: Optional[ModelNameResolver] = None,
    ) -> None:
        self._config: GeneratorConfig = config or GeneratorConfig()
        self._resolver: ModelNameResolver = model_name_resolver or identity_resolver
        logger.debug(
            "ModelAssembler initialised (format=%s, validation=%s).",
            self._config.output_format.value,
            self._config.include_validation.value,
        )

    @property
    def config(self) -> GeneratorConfig:
        return self._config

    @property
    def _format(self) -> OutputFormat:
        return self._config.output_format

    # ===================================================================
    # Entry point
    # ===================================================================

    def assemble(self, spec: ModelSpec) -> AssemblyResult:
        """
        Validate *spec* and build its document.

        Configuration errors never stop assembly; the affected aspect of a
        field is left out and the error is reported in ``issues``.
        """
        issues: ValidationResult = validate_model(spec, self._config)
        name: str = spec.resolved_name

        body: Document = {}
        body["idProperty"] = spec.id_property
        if spec.version_property:
            body["versionProperty"] = spec.version_property
        if spec.client_id_property:
            body["clientIdProperty"] = spec.client_id_property
        if spec.identifier:
            body["identifier"] = spec.identifier
        if spec.has_many:
            body["hasMany"] = list(spec.has_many)

        if spec.has_proxy:
            body["proxy"] = self._assemble_proxy(spec)

        body["fields"] = [self.assemble_field(fld) for fld in spec.fields]

        if spec.associations:
            body["associations"] = [
                assemble_association(assoc, name, self._resolver)
                for assoc in spec.associations
            ]

        validations = included_validations(
            spec.validations, self._config.include_validation
        )
        if validations:
            if self._format is OutputFormat.EXTJS5:
                body["validators"] = self._validators_by_field(validations)
            else:
                body["validations"] = [
                    self._validation_entry(v) for v in validations
                ]

        document: Document = {
            "name": name,
            "extend": spec.extend or self._config.default_extend,
        }
        if self._format is OutputFormat.TOUCH2:
            document["config"] = body
        else:
            document.update(body)

        logger.debug(
            "Assembled model '%s': %d field(s), %d association(s), %d validator(s).",
            name,
            len(spec.fields),
            len(spec.associations),
            len(validations),
        )
        return AssemblyResult(model_name=name, document=document, issues=issues)

    # ===================================================================
    # Proxy
    # ===================================================================

    def _method_reference(self, method: str) -> Any:
        if self._config.surround_api_with_quotes:
            return method
        return RawLiteral(method)

    def _assemble_proxy(self, spec: ModelSpec) -> Document:
        proxy: Document = {}
        methods: Dict[str, str] = spec.remote_methods

        if methods:
            proxy["type"] = "direct"
        if spec.id_property != "id":
            proxy["idParam"] = spec.id_property

        if list(methods) == ["read"]:
            proxy["directFn"] = self._method_reference(methods["read"])
        elif methods:
            proxy["api"] = {
                action: self._method_reference(method) for action, method in methods.items()
            }

        if spec.disable_paging_parameters:
            disabled: Any = _DISABLED_PAGING_VALUE[self._format]
            for param in _PAGING_PARAMETERS:
                proxy[param] = disabled

        if spec.has_reader_settings:
            proxy["reader"] = self._assemble_reader(spec)
        if spec.has_writer_settings:
            proxy["writer"] = self._assemble_writer(spec)
        return proxy

    def _assemble_reader(self, spec: ModelSpec) -> Document:
        reader: Document = {}
        if spec.reader:
            reader["type"] = spec.reader

        root: str = spec.root_property or (_PAGING_ROOT if spec.paging else "")
        if root:
            root_key: str = "root" if self._format is OutputFormat.EXTJS4 else "rootProperty"
            reader[root_key] = root

        if spec.message_property:
            reader["messageProperty"] = spec.message_property
        if spec.success_property:
            reader["successProperty"] = spec.success_property
        if spec.total_property:
            reader["totalProperty"] = spec.total_property
        return reader

    def _assemble_writer(self, spec: ModelSpec) -> Document:
        writer: Document = {}
        if spec.writer:
            writer["type"] = spec.writer
        if spec.write_all_fields is not None:
            writer["writeAllFields"] = spec.write_all_fields
        if self._format is OutputFormat.EXTJS5:
            if spec.all_data_options is not None:
                writer["allDataOptions"] = spec.all_data_options.model_dump()
            if spec.partial_data_options is not None:
                writer["partialDataOptions"] = spec.partial_data_options.model_dump()
        return writer

    # ===================================================================
    # Fields
    # ===================================================================

    def assemble_field(self, fld: FieldSpec) -> Document:
        """Build one entry of the ``fields`` list; defaults are left out."""
        emitted_type: str = resolve_type(
            fld.type, fld.custom_type, self._config.autodetect_types, fld.native_type
        )
        block: Document = {"name": fld.name, "type": emitted_type}

        default = typed_default(fld.default_value, emitted_type)
        if default is not None:
            block["defaultValue"] = default
        if fld.date_format and emitted_type == ModelType.DATE.value:
            block["dateFormat"] = fld.date_format
        if fld.effective_null:
            null_key: str = "allowNull" if self._format is OutputFormat.EXTJS5 else "useNull"
            block[null_key] = True
        if not fld.allow_blank:
            block["allowBlank"] = False
        if fld.unique:
            block["unique"] = True
        if fld.mapping:
            block["mapping"] = fld.mapping
        if not fld.persist:
            block["persist"] = False
        if fld.critical:
            block["critical"] = True
        if fld.depends:
            block["depends"] = list(fld.depends)
        if fld.convert:
            block["convert"] = RawLiteral(fld.convert)
        if fld.calculate:
            block["calculate"] = RawLiteral(fld.calculate)
        if fld.reference is not None:
            reference: Optional[Document] = assemble_reference(fld.reference)
            if reference is not None:
                block["reference"] = reference
        return block

    # ===================================================================
    # Validators
    # ===================================================================

    @staticmethod
    def _validation_entry(validation: ValidationSpec) -> Document:
        block: Document = assemble_validation(validation)
        entry: Document = {"type": block.pop("type"), "field": validation.field}
        entry.update(block)
        return entry

    @staticmethod
    def _validators_by_field(validations: List[ValidationSpec]) -> Document:
        grouped: Document = {}
        for validation in validations:
            grouped.setdefault(validation.field, []).append(assemble_validation(validation))
        return grouped


# ---------------------------------------------------------------------------
# Convenience function
# ---------------------------------------------------------------------------


def assemble(
    spec: ModelSpec,
    config: Optional[GeneratorConfig] = None,
    model_name_resolver: Optional[ModelNameResolver] = None,
) -> Document:
    """Assemble *spec* and return just the document."""
    return ModelAssembler(config, model_name_resolver).assemble(spec).document


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "Document",
    "ModelNameResolver",
    "identity_resolver",
    "assemble_reference",
    "default_foreign_key",
    "assemble_association",
    "validation_type_name",
    "assemble_validation",
    "included_validations",
    "AssemblyResult",
    "ModelAssembler",
    "assemble",
]

logger.debug("extmodelgen.assembler loaded — %d public symbols.", len(__all__))
