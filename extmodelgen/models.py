# File: extmodelgen/models.py
"""
extmodelgen - Core Data Models
===============================
Pydantic V2 models representing the resolved model metadata and the
generator configuration.  These models form the single source of truth for
the entire pipeline: Metadata Loading → Validation → Assembly → Rendering.

Every entity is frozen: a ``ModelSpec`` is built once per generation request,
consumed once to produce a descriptor document and then discarded.  Input
keys may be written in camelCase (``idProperty``, ``useNull``) or in
snake_case (``id_property``, ``use_null``).
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Dict, FrozenSet, List, Optional, Tuple, Type

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    computed_field,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("extmodelgen.models")

# ---------------------------------------------------------------------------
# Enums — fixed sets used across the entire project
# ---------------------------------------------------------------------------


class ModelType(str, Enum):
    """Field types understood by the client data package (value = emitted name)."""

    NOT_SPECIFIED = ""
    AUTO = "auto"
    INTEGER = "int"
    FLOAT = "float"
    NUMBER = "number"
    STRING = "string"
    DATE = "date"
    BOOLEAN = "boolean"


class ModelAssociationType(str, Enum):
    """Association kinds (value = emitted ``type``)."""

    HAS_MANY = "hasMany"
    BELONGS_TO = "belongsTo"
    HAS_ONE = "hasOne"


class ModelValidationType(str, Enum):
    """Client-side validator kinds (value = emitted ``type``)."""

    GENERIC = "generic"
    CREDITCARDNUMBER = "creditCardNumber"
    DIGITS = "digits"
    EMAIL = "email"
    FORMAT = "format"
    FUTURE = "future"
    INCLUSION = "inclusion"
    LENGTH = "length"
    NOTBLANK = "notBlank"
    PAST = "past"
    PRESENCE = "presence"
    RANGE = "range"

    @property
    def builtin(self) -> bool:
        """True when the client framework ships this validator out of the box."""
        return self in _BUILTIN_VALIDATION_TYPES


_BUILTIN_VALIDATION_TYPES: FrozenSet[ModelValidationType] = frozenset(
    {
        ModelValidationType.EMAIL,
        ModelValidationType.FORMAT,
        ModelValidationType.INCLUSION,
        ModelValidationType.LENGTH,
        ModelValidationType.PRESENCE,
    }
)


class OutputFormat(str, Enum):
    """Client framework dialect the descriptor is produced for."""

    EXTJS4 = "extjs4"
    EXTJS5 = "extjs5"
    TOUCH2 = "touch2"


class IncludeValidation(str, Enum):
    """Which validators end up in the generated descriptor."""

    NONE = "none"
    BUILTIN = "builtin"
    ALL = "all"


def _coerce_enum(enum_cls: Type[Enum], value: Any) -> Any:
    """
    Accept an enum member, its value (``"int"``) or its name (``"integer"``,
    ``"INTEGER"``).  Anything unrecognised is passed through so pydantic can
    report it.
    """
    if value is None or isinstance(value, enum_cls):
        return value
    if isinstance(value, str):
        for member in enum_cls:
            if member.value == value:
                return member
        key: str = value.strip().upper().replace("-", "_")
        if key in enum_cls.__members__:
            return enum_cls.__members__[key]
        for member in enum_cls:
            if isinstance(member.value, str) and member.value.lower() == value.lower():
                return member
    return value


# ---------------------------------------------------------------------------
# Document literals the writers treat specially
# ---------------------------------------------------------------------------


class Undefined:
    """Marker for the client-side ``undefined`` value (distinct from an omitted key)."""

    __slots__ = ()
    _instance: Optional["Undefined"] = None

    def __new__(cls) -> "Undefined":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNDEFINED"

    def __bool__(self) -> bool:
        return False


UNDEFINED: Undefined = Undefined()


class RawLiteral(str):
    """
    Text that writers emit verbatim, never quoted.

    Used for numeric and boolean default values, function sources
    (``convert``/``calculate``) and remote-method references.
    """

    __slots__ = ()

    def __repr__(self) -> str:
        return f"RawLiteral({str.__repr__(self)})"


# ---------------------------------------------------------------------------
# Mixin: shared model configuration
# ---------------------------------------------------------------------------

_SHARED_CONFIG: ConfigDict = ConfigDict(
    strict=False,
    populate_by_name=True,
    alias_generator=to_camel,
    frozen=True,
    extra="forbid",
    arbitrary_types_allowed=True,
)


def _as_text(value: Any) -> Any:
    """Scalar → string the way the metadata was written (``True`` → ``"true"``)."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    return value


# ---------------------------------------------------------------------------
# Field-level metadata
# ---------------------------------------------------------------------------


class ReferenceSpec(BaseModel):
    """Reference from one field to another model (type, owned child or owning parent)."""

    model_config = _SHARED_CONFIG

    type: str = Field(default="", description="Referenced model type (plain reference).")
    association: str = Field(default="", description="Association name override.")
    child: str = Field(default="", description="Referenced model is an owned child.")
    parent: str = Field(default="", description="Referenced model is the owning parent.")
    role: str = Field(default="", description="Role played by the referenced entity.")
    inverse: str = Field(default="", description="Inverse role name.")

    @computed_field  # type: ignore[misc]
    @property
    def targets(self) -> List[Tuple[str, str]]:
        """The ``(key, value)`` pairs of type/child/parent that are set, in that order."""
        return [
            (key, value)
            for key, value in (("type", self.type), ("child", self.child), ("parent", self.parent))
            if value
        ]

    @property
    def has_ownership_conflict(self) -> bool:
        return len(self.targets) > 1

    def __repr__(self) -> str:
        keys: str = ",".join(k for k, _ in self.targets) or "empty"
        return f"<Reference {keys}>"


class FieldSpec(BaseModel):
    """
    Complete specification of a single model field.

    ``use_null`` and ``allow_null`` are two names for the same flag; both
    are tri-state so that "not set" can be told apart from ``False``.
    """

    model_config = _SHARED_CONFIG

    name: str = Field(..., min_length=1, description="Field name.")
    type: ModelType = Field(default=ModelType.NOT_SPECIFIED, description="Explicit type.")
    custom_type: str = Field(default="", description="Custom type; wins over ``type``.")
    native_type: Any = Field(
        default=None,
        description="Native type of the backing value (class or qualified name).",
    )
    default_value: str = Field(default="", description="Default value literal.")
    date_format: str = Field(default="", description="Date format (DATE fields only).")
    use_null: Optional[bool] = Field(default=None, description="Use null for unparsable values.")
    allow_null: Optional[bool] = Field(default=None, description="Alias of use_null.")
    allow_blank: bool = Field(default=True, description="Blank values accepted.")
    unique: bool = Field(default=False, description="Field value is unique.")
    mapping: str = Field(default="", description="Mapping expression into the raw data.")
    persist: bool = Field(default=True, description="Field is written back to the server.")
    critical: bool = Field(default=False, description="Always sent, even when unchanged.")
    depends: List[str] = Field(default_factory=list, description="Fields this one depends on.")
    convert: str = Field(default="", description="Convert function source.")
    calculate: str = Field(default="", description="Calculate function source.")
    reference: Optional[ReferenceSpec] = Field(default=None, description="Reference config.")

    @field_validator("type", mode="before")
    @classmethod
    def _coerce_type(cls, v: Any) -> Any:
        if v is None:
            return ModelType.NOT_SPECIFIED
        return _coerce_enum(ModelType, v)

    @field_validator("default_value", mode="before")
    @classmethod
    def _coerce_default(cls, v: Any) -> Any:
        return _as_text(v)

    @field_validator("depends", mode="before")
    @classmethod
    def _coerce_depends(cls, v: Any) -> Any:
        if v is None:
            return []
        if isinstance(v, str):
            return [v] if v else []
        return v

    @property
    def nullability_conflict(self) -> bool:
        """True when useNull and allowNull were both given with different values."""
        return (
            self.use_null is not None
            and self.allow_null is not None
            and self.use_null != self.allow_null
        )

    @computed_field  # type: ignore[misc]
    @property
    def effective_null(self) -> Optional[bool]:
        """OR-merge of useNull/allowNull; ``None`` when unset or conflicting."""
        if self.nullability_conflict:
            return None
        given: List[bool] = [v for v in (self.use_null, self.allow_null) if v is not None]
        if not given:
            return None
        return any(given)

    def __repr__(self) -> str:
        shown: str = self.custom_type or self.type.value or "?"
        return f"<Field {self.name} {shown}>"


# ---------------------------------------------------------------------------
# Associations & validations
# ---------------------------------------------------------------------------


class AssociationSpec(BaseModel):
    """An association from the owning model to another model."""

    model_config = _SHARED_CONFIG

    type: ModelAssociationType = Field(..., description="Association kind.")
    property_name: str = Field(..., min_length=1, description="Property on the owner model.")
    model: str = Field(..., min_length=1, description="Associated model type.")
    foreign_key: str = Field(default="", description="Foreign key override.")
    primary_key: str = Field(default="", description="Primary key on the associated model.")
    setter_name: str = Field(default="", description="Setter name (BELONGS_TO/HAS_ONE).")
    getter_name: str = Field(default="", description="Getter name (BELONGS_TO/HAS_ONE).")
    auto_load: bool = Field(default=False, description="Auto-load the store (HAS_MANY).")
    name: str = Field(default="", description="Store getter name (HAS_MANY).")
    instance_name: str = Field(default="", description="instanceName override.")

    @field_validator("type", mode="before")
    @classmethod
    def _coerce_type(cls, v: Any) -> Any:
        return _coerce_enum(ModelAssociationType, v)

    @property
    def is_single_valued(self) -> bool:
        return self.type in (ModelAssociationType.BELONGS_TO, ModelAssociationType.HAS_ONE)

    def __repr__(self) -> str:
        return f"<Association {self.type.value} {self.property_name} → {self.model}>"


class ValidationParameter(BaseModel):
    """One ``name = value`` parameter of a validator."""

    model_config = _SHARED_CONFIG

    name: str = Field(..., min_length=1, description="Parameter name.")
    value: str = Field(default="", description="Parameter value, as written.")

    @field_validator("value", mode="before")
    @classmethod
    def _coerce_value(cls, v: Any) -> Any:
        return _as_text(v)


class ValidationSpec(BaseModel):
    """A validator attached to a field, with its ordered parameter list."""

    model_config = _SHARED_CONFIG

    type: ModelValidationType = Field(..., description="Validator kind.")
    field: str = Field(..., min_length=1, description="Field the validator applies to.")
    parameters: List[ValidationParameter] = Field(
        default_factory=list, description="Ordered parameters."
    )

    @field_validator("type", mode="before")
    @classmethod
    def _coerce_type(cls, v: Any) -> Any:
        return _coerce_enum(ModelValidationType, v)

    @field_validator("parameters", mode="before")
    @classmethod
    def _coerce_parameters(cls, v: Any) -> Any:
        if v is None:
            return []
        if isinstance(v, dict):
            return [{"name": k, "value": val} for k, val in v.items()]
        return v

    def parameter_names(self) -> List[str]:
        return [p.name for p in self.parameters]

    def __repr__(self) -> str:
        return f"<Validation {self.type.value} on {self.field}>"


# ---------------------------------------------------------------------------
# Writer data options
# ---------------------------------------------------------------------------


class AllDataOptions(BaseModel):
    """Writer options used when all record data is written."""

    model_config = _SHARED_CONFIG

    associated: bool = False
    changes: bool = False
    critical: bool = False
    persist: bool = True


class PartialDataOptions(BaseModel):
    """Writer options used when only changed record data is written."""

    model_config = _SHARED_CONFIG

    associated: bool = False
    changes: bool = True
    critical: bool = True
    persist: bool = False


# ---------------------------------------------------------------------------
# Model (top-level container)
# ---------------------------------------------------------------------------


class ModelSpec(BaseModel):
    """
    The root model: everything known about one client-side model.

    ``name`` falls back to ``source_type`` (the fully-qualified backend type)
    when it is not given; at least one of the two is required.
    """

    model_config = _SHARED_CONFIG

    name: str = Field(default="", description="Client-side model name.")
    source_type: str = Field(default="", description="Fully-qualified backend type.")
    extend: str = Field(default="", description="Superclass of the model.")
    id_property: str = Field(default="id", min_length=1, description="Id property name.")
    version_property: str = Field(default="", description="Version property name.")
    client_id_property: str = Field(default="", description="Client id property name.")
    identifier: str = Field(default="", description="Identifier generator name.")

    # -- Proxy / reader / writer -------------------------------------------
    paging: bool = Field(default=False, description="Reader root defaults to 'records'.")
    disable_paging_parameters: bool = Field(
        default=False, description="Suppress page/start/limit request parameters."
    )
    read_method: str = Field(default="", description="Remote read method.")
    create_method: str = Field(default="", description="Remote create method.")
    update_method: str = Field(default="", description="Remote update method.")
    destroy_method: str = Field(default="", description="Remote destroy method.")
    message_property: str = Field(default="", description="Reader messageProperty.")
    success_property: str = Field(default="", description="Reader successProperty.")
    total_property: str = Field(default="", description="Reader totalProperty.")
    root_property: str = Field(default="", description="Reader root; wins over paging.")
    writer: str = Field(default="", description="Writer type name.")
    reader: str = Field(default="", description="Reader type name.")
    write_all_fields: Optional[bool] = Field(default=None, description="Writer writeAllFields.")
    all_data_options: Optional[AllDataOptions] = Field(default=None)
    partial_data_options: Optional[PartialDataOptions] = Field(default=None)

    # -- Content ------------------------------------------------------------
    has_many: List[str] = Field(
        default_factory=list, description="hasMany declarations without foreign keys."
    )
    fields: List[FieldSpec] = Field(default_factory=list, description="Ordered fields.")
    associations: List[AssociationSpec] = Field(
        default_factory=list, description="Ordered associations."
    )
    validations: List[ValidationSpec] = Field(
        default_factory=list, description="Ordered validators."
    )

    @field_validator("has_many", mode="before")
    @classmethod
    def _coerce_has_many(cls, v: Any) -> Any:
        if v is None:
            return []
        if isinstance(v, str):
            return [v] if v else []
        return v

    @model_validator(mode="after")
    def _require_name(self) -> "ModelSpec":
        if not self.name and not self.source_type:
            raise ValueError("A model needs a 'name' or a 'sourceType'.")
        return self

    # -- Derived helpers ----------------------------------------------------

    @computed_field  # type: ignore[misc]
    @property
    def resolved_name(self) -> str:
        return self.name or self.source_type

    @computed_field  # type: ignore[misc]
    @property
    def remote_methods(self) -> Dict[str, str]:
        """The configured remote methods keyed by api action, in CRUD order."""
        return {
            action: method
            for action, method in (
                ("read", self.read_method),
                ("create", self.create_method),
                ("update", self.update_method),
                ("destroy", self.destroy_method),
            )
            if method
        }

    @property
    def has_proxy(self) -> bool:
        return bool(
            self.remote_methods
            or self.writer
            or self.reader
            or self.paging
            or self.disable_paging_parameters
        )

    @property
    def has_reader_settings(self) -> bool:
        return bool(
            self.reader
            or self.root_property
            or self.paging
            or self.message_property
            or self.success_property
            or self.total_property
        )

    @property
    def has_writer_settings(self) -> bool:
        return bool(
            self.writer
            or self.write_all_fields is not None
            or self.all_data_options is not None
            or self.partial_data_options is not None
        )

    def get_field(self, name: str) -> Optional[FieldSpec]:
        for fld in self.fields:
            if fld.name == name:
                return fld
        return None

    def __repr__(self) -> str:
        return (
            f"<ModelSpec {self.resolved_name} "
            f"({len(self.fields)} fields, {len(self.associations)} associations, "
            f"{len(self.validations)} validations)>"
        )


# ---------------------------------------------------------------------------
# Generator Configuration
# ---------------------------------------------------------------------------


class GeneratorConfig(BaseModel):
    """
    Settings that control how descriptors are assembled and rendered.

    A single instance (combined with one or more ``ModelSpec``) is all the
    generator needs to produce its output.
    """

    model_config = _SHARED_CONFIG

    output_format: OutputFormat = Field(
        default=OutputFormat.EXTJS4, description="Client framework dialect."
    )
    include_validation: IncludeValidation = Field(
        default=IncludeValidation.ALL, description="Which validators to emit."
    )
    autodetect_types: bool = Field(
        default=True, description="Infer field types from native types."
    )
    surround_api_with_quotes: bool = Field(
        default=False,
        description="Emit remote-method references as strings instead of raw references.",
    )
    default_extend: str = Field(
        default="Ext.data.Model", min_length=1, description="Superclass when none is set."
    )
    use_single_quotes: bool = Field(default=False, description="Writer quote style.")
    debug: bool = Field(default=True, description="Pretty-print rendered output.")

    @field_validator("output_format", mode="before")
    @classmethod
    def _coerce_output_format(cls, v: Any) -> Any:
        return _coerce_enum(OutputFormat, v)

    @field_validator("include_validation", mode="before")
    @classmethod
    def _coerce_include_validation(cls, v: Any) -> Any:
        return _coerce_enum(IncludeValidation, v)


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "ModelType",
    "ModelAssociationType",
    "ModelValidationType",
    "OutputFormat",
    "IncludeValidation",
    "Undefined",
    "UNDEFINED",
    "RawLiteral",
    "ReferenceSpec",
    "FieldSpec",
    "AssociationSpec",
    "ValidationParameter",
    "ValidationSpec",
    "AllDataOptions",
    "PartialDataOptions",
    "ModelSpec",
    "GeneratorConfig",
]

logger.debug("extmodelgen.models loaded — %d public symbols.", len(__all__))
