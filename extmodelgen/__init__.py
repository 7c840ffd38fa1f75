# File: extmodelgen/__init__.py
"""
extmodelgen — Client-Side Model Descriptor Generator
=====================================================

Turns resolved backend model metadata (fields, associations, validators,
proxy settings) into Ext JS / Sencha Touch ``Ext.data.Model`` descriptors,
so the client model never has to be written by hand.

Architecture overview::

    ┌────────────────┐     ┌────────────────┐     ┌──────────────┐
    │ ModelGenerator │────▶│ ModelAssembler │────▶│   writers    │
    │ (generator.py) │     │ (assembler.py) │     │    (.py)     │
    └───────┬────────┘     └───────┬────────┘     └──────────────┘
            │                      │
            ▼          ┌───────────┼───────────┐
     ┌────────────┐    ▼           ▼           ▼
     │ModelRegistry│ ┌──────────┐ ┌─────────┐ ┌──────────┐
     └────────────┘ │validators│ │resolvers│ │  models  │
                    └──────────┘ └─────────┘ └──────────┘

Usage::

    from extmodelgen import ModelGenerator, ModelSpec, GeneratorConfig

    spec = ModelSpec(name="App.model.Book", fields=[{"name": "title", "type": "string"}])
    report = ModelGenerator().generate([spec], GeneratorConfig(output_format="extjs5"))
    print(report.outputs["App.model.Book"])

Public API:
    - ModelGenerator   — Pipeline orchestrator
    - ModelAssembler   — Descriptor assembly engine
    - ModelSpec        — Model metadata
    - GeneratorConfig  — Generator settings
    - JsonWriter / ExtDefineWriter — Renderers
    - validate_model   — Semantic validation entry point
"""

from __future__ import annotations

__version__: str = "1.0.0"
__license__: str = "Apache-2.0"

from extmodelgen.models import (
    UNDEFINED,
    AllDataOptions,
    AssociationSpec,
    FieldSpec,
    GeneratorConfig,
    IncludeValidation,
    ModelAssociationType,
    ModelSpec,
    ModelType,
    ModelValidationType,
    OutputFormat,
    PartialDataOptions,
    RawLiteral,
    ReferenceSpec,
    ValidationParameter,
    ValidationSpec,
)
from extmodelgen.resolvers import resolve_default, resolve_type
from extmodelgen.validators import ValidationResult, is_well_formed, validate_model
from extmodelgen.assembler import (
    AssemblyResult,
    ModelAssembler,
    assemble,
    assemble_association,
    assemble_reference,
)
from extmodelgen.writers import ExtDefineWriter, JsonWriter, get_writer
from extmodelgen.generator import (
    GenerationReport,
    ModelGenerator,
    ModelRegistry,
    load_model_file,
    parse_raw_models,
)

# ---------------------------------------------------------------------------
# Public API surface
# ---------------------------------------------------------------------------

__all__: list[str] = [
    # Version info
    "__version__",
    "__license__",
    # Core orchestrator
    "ModelGenerator",
    "ModelRegistry",
    "GenerationReport",
    "load_model_file",
    "parse_raw_models",
    # Models
    "UNDEFINED",
    "RawLiteral",
    "AllDataOptions",
    "AssociationSpec",
    "FieldSpec",
    "GeneratorConfig",
    "IncludeValidation",
    "ModelAssociationType",
    "ModelSpec",
    "ModelType",
    "ModelValidationType",
    "OutputFormat",
    "PartialDataOptions",
    "ReferenceSpec",
    "ValidationParameter",
    "ValidationSpec",
    # Resolution
    "resolve_type",
    "resolve_default",
    # Validation
    "validate_model",
    "is_well_formed",
    "ValidationResult",
    # Assembly
    "ModelAssembler",
    "AssemblyResult",
    "assemble",
    "assemble_reference",
    "assemble_association",
    # Writers
    "JsonWriter",
    "ExtDefineWriter",
    "get_writer",
]
