# File: extmodelgen/generator.py
"""
extmodelgen - Generation Pipeline (Orchestrator)
=================================================

Connects every phase together:

    Metadata Input → Validation → Descriptor Assembly → Rendering

Workflow::

    1. Load metadata from a JSON/YAML file (or accept in-memory objects).
    2. Parse into ``ModelSpec`` list + ``GeneratorConfig`` (models.py).
    3. Register every model in the ``ModelRegistry`` so associations can
       resolve each other's names.
    4. Validate and assemble each model (validators.py, assembler.py).
    5. Render each document with the selected writer (writers.py).
    6. Return a ``GenerationReport`` with documents, outputs and metrics.

Error handling strategy:
    - Configuration issues are collected and surfaced, never swallowed;
      the document is still produced.
    - Failures are isolated per model; one bad model doesn't stop the
      others.
    - The final report gives a clear pass/fail verdict.
"""

from __future__ import annotations

import copy
import json
import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple

import yaml
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_snake

from extmodelgen.assembler import AssemblyResult, Document, ModelAssembler
from extmodelgen.models import GeneratorConfig, ModelSpec
from extmodelgen.utils import Timer, count_lines
from extmodelgen.validators import ValidationError
from extmodelgen.writers import DocumentWriter, get_writer

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("extmodelgen.generator")

_CONFIG_KEYS: Tuple[str, ...] = ("config", "generator_config", "generatorConfig")


# ---------------------------------------------------------------------------
# Generation report
# ---------------------------------------------------------------------------


@dataclass(frozen=False, slots=True)
class GenerationStepMetric:
    """Timing and outcome for a single pipeline step."""

    step_name: str = ""
    success: bool = True
    elapsed_seconds: float = 0.0
    detail: str = ""


@dataclass(frozen=False, slots=True)
class GenerationReport:
    """
    Report produced by ``ModelGenerator.generate()``.

    Holds the assembled documents and rendered outputs keyed by model
    name, timing information, and any issues encountered.
    """

    success: bool = False
    output_format: str = ""

    # Metrics
    total_models: int = 0
    total_lines: int = 0
    total_chars: int = 0
    total_elapsed_seconds: float = 0.0

    # Results
    documents: Dict[str, Document] = field(default_factory=dict)
    outputs: Dict[str, str] = field(default_factory=dict)
    results: Dict[str, AssemblyResult] = field(default_factory=dict)

    # Sub-reports
    step_metrics: List[GenerationStepMetric] = field(default_factory=list)
    validation_errors: List[str] = field(default_factory=list)
    validation_warnings: List[str] = field(default_factory=list)
    generation_errors: List[str] = field(default_factory=list)

    def summary(self) -> str:
        """Return a human-readable summary string."""
        lines: List[str] = []
        status: str = "✅ SUCCESS" if self.success else "❌ FAILED"
        lines.append(f"{'='*60}")
        lines.append("  extmodelgen — Generation Report")
        lines.append(f"{'='*60}")
        lines.append(f"  Status:           {status}")
        lines.append(f"  Output format:    {self.output_format}")
        lines.append(f"  Models generated: {len(self.outputs)}/{self.total_models}")
        lines.append(f"  Total lines:      {self.total_lines:,}")
        lines.append(f"  Total chars:      {self.total_chars:,}")
        lines.append(f"  Total time:       {self.total_elapsed_seconds:.3f}s")
        lines.append(f"{'─'*60}")

        if self.step_metrics:
            lines.append("  Pipeline Steps:")
            for step in self.step_metrics:
                icon: str = "✓" if step.success else "✗"
                lines.append(
                    f"    {icon} {step.step_name:<28s} "
                    f"{step.elapsed_seconds:>7.3f}s  "
                    f"{step.detail}"
                )

        sections: List[Tuple[str, str, List[str]]] = [
            ("Validation Errors", "✗", self.validation_errors),
            ("Validation Warnings", "⚠", self.validation_warnings),
            ("Generation Errors", "✗", self.generation_errors),
        ]
        for title, icon, items in sections:
            if not items:
                continue
            lines.append(f"{'─'*60}")
            lines.append(f"  {title} ({len(items)}):")
            for item in items:
                lines.append(f"    {icon} {item}")

        lines.append(f"{'='*60}")
        return "\n".join(lines)


# ---------------------------------------------------------------------------
# Metadata loader helpers
# ---------------------------------------------------------------------------


def _load_json_file(path: Path) -> Dict[str, Any]:
    """Load and parse a JSON file. Raises ValueError on parse errors."""
    try:
        data: Any = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid JSON in {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ValueError(f"Expected a JSON object at top level, got {type(data).__name__}.")
    return data


def _load_yaml_file(path: Path) -> Dict[str, Any]:
    """Load and parse a YAML file. Raises ValueError on parse errors."""
    try:
        data: Any = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise ValueError(f"Invalid YAML in {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ValueError(f"Expected a YAML mapping at top level, got {type(data).__name__}.")
    return data


def load_model_file(path: Path) -> Dict[str, Any]:
    """
    Load a model metadata file (JSON or YAML).

    Dispatches based on file extension.

    Raises:
        FileNotFoundError: If the file doesn't exist.
        ValueError: If the file can't be parsed.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Model file not found: {path}")
    if not path.is_file():
        raise ValueError(f"Model path is not a file: {path}")

    suffix: str = path.suffix.lower()
    if suffix in (".yaml", ".yml"):
        return _load_yaml_file(path)
    if suffix == ".json":
        return _load_json_file(path)

    logger.info("Unknown extension '%s' — trying JSON then YAML.", suffix)
    try:
        return _load_json_file(path)
    except ValueError:
        return _load_yaml_file(path)


def _config_section(raw: Dict[str, Any]) -> Dict[str, Any]:
    for key in _CONFIG_KEYS:
        if key in raw:
            section: Any = raw[key] or {}
            if not isinstance(section, dict):
                raise ValueError(f"'{key}' must be a mapping, got {type(section).__name__}.")
            return section
    return {}


def parse_raw_models(
    raw: Dict[str, Any],
    config_overrides: Optional[Dict[str, Any]] = None,
) -> Tuple[List[ModelSpec], GeneratorConfig]:
    """
    Parse a raw dictionary (from JSON/YAML) into validated Pydantic models.

    Expected top-level keys:
        - "models" (a list) or "model" (a single mapping)
        - optionally "config" / "generator_config": the generator settings

    Raises:
        ValueError: If required keys are missing or validation fails.
    """
    if "models" in raw:
        model_data: Any = raw["models"]
        if not isinstance(model_data, list):
            raise ValueError("'models' must be a list of model mappings.")
    elif "model" in raw:
        model_data = [raw["model"]]
    else:
        raise ValueError(
            "Cannot find model metadata in input. Expected top-level key: 'models' or 'model'."
        )

    config_data: Dict[str, Any] = _config_section(raw)
    if not config_data and not config_overrides:
        logger.info("No generator config found in input — using defaults.")

    models: List[ModelSpec] = []
    for index, item in enumerate(model_data):
        try:
            models.append(ModelSpec.model_validate(item))
        except PydanticValidationError as exc:
            raise ValueError(f"Model #{index} validation failed: {exc}") from exc

    try:
        config: GeneratorConfig = GeneratorConfig.model_validate(config_data)
        if config_overrides:
            # Overrides may be camelCase or snake_case; merge on attribute names.
            merged: Dict[str, Any] = config.model_dump()
            merged.update({to_snake(k): v for k, v in config_overrides.items()})
            config = GeneratorConfig.model_validate(merged)
    except PydanticValidationError as exc:
        raise ValueError(f"Config validation failed: {exc}") from exc

    return models, config


# ---------------------------------------------------------------------------
# Model registry
# ---------------------------------------------------------------------------


class ModelRegistry:
    """
    Cache of ``ModelSpec`` keyed by model type.

    The key is a model's ``source_type`` when given, else its name.  An
    entry is computed once and never invalidated.  The registry doubles as
    the model-name resolver for associations: a registered type resolves to
    its configured model name, an unknown type resolves to itself.
    """

    __slots__ = ("_specs",)

    def __init__(self, specs: Optional[Iterable[ModelSpec]] = None) -> None:
        self._specs: Dict[str, ModelSpec] = {}
        for spec in specs or ():
            self.register(spec)

    @staticmethod
    def key_for(spec: ModelSpec) -> str:
        return spec.source_type or spec.name

    def register(self, spec: ModelSpec) -> ModelSpec:
        """Register *spec*; the first registration for a type wins."""
        key: str = self.key_for(spec)
        existing: Optional[ModelSpec] = self._specs.get(key)
        if existing is not None:
            if existing != spec:
                logger.warning("Model type '%s' already registered; keeping the first.", key)
            return existing
        self._specs[key] = spec
        logger.debug("Registered model '%s' under '%s'.", spec.resolved_name, key)
        return spec

    def get(self, model_type: str) -> Optional[ModelSpec]:
        return self._specs.get(model_type)

    def resolve_name(self, model_type: str) -> str:
        spec: Optional[ModelSpec] = self._specs.get(model_type)
        return spec.resolved_name if spec is not None else model_type

    def __call__(self, model_type: str) -> str:
        return self.resolve_name(model_type)

    def __contains__(self, model_type: object) -> bool:
        return model_type in self._specs

    def __len__(self) -> int:
        return len(self._specs)

    def __repr__(self) -> str:
        return f"<ModelRegistry {len(self._specs)} model(s)>"


# ---------------------------------------------------------------------------
# ModelGenerator
# ---------------------------------------------------------------------------


class ModelGenerator:
    """
    Pipeline orchestrator.

    Usage::

        generator = ModelGenerator()

        # From a file
        report = generator.generate_from_file(Path("models.yaml"))

        # From in-memory objects
        report = generator.generate(models=[book_spec], config=GeneratorConfig())

        print(report.outputs["App.model.Book"])

    The generator is reusable, and its registry is shared across calls so
    models from earlier runs still resolve by name.
    """

    def __init__(
        self,
        *,
        writer: str = "extdefine",
        fail_on_warnings: bool = False,
        registry: Optional[ModelRegistry] = None,
    ) -> None:
        """
        Args:
            writer: ``"extdefine"`` or ``"json"``.
            fail_on_warnings: If True, validation warnings fail the report.
            registry: Registry to resolve association targets against.
        """
        self._writer_kind: str = writer
        self._fail_on_warnings: bool = fail_on_warnings
        self._registry: ModelRegistry = registry if registry is not None else ModelRegistry()
        # Fail fast on an unknown writer name.
        get_writer(writer)

        logger.debug(
            "ModelGenerator initialised: writer=%s, fail_on_warnings=%s.",
            writer,
            fail_on_warnings,
        )

    @property
    def registry(self) -> ModelRegistry:
        return self._registry

    # -----------------------------------------------------------------
    # Public: single model
    # -----------------------------------------------------------------

    def build(self, spec: ModelSpec, config: Optional[GeneratorConfig] = None) -> AssemblyResult:
        """Register and assemble one model, without rendering it."""
        self._registry.register(spec)
        return ModelAssembler(config, self._registry).assemble(spec)

    # -----------------------------------------------------------------
    # Public: generate from file / raw mapping
    # -----------------------------------------------------------------

    def generate_from_file(
        self,
        model_path: Path,
        *,
        config_overrides: Optional[Dict[str, Any]] = None,
    ) -> GenerationReport:
        """Full pipeline: load file → parse → validate → assemble → render."""
        report: GenerationReport = GenerationReport()

        with Timer("load_models") as t_load:
            try:
                raw_data: Dict[str, Any] = load_model_file(Path(model_path))
            except (FileNotFoundError, ValueError) as exc:
                load_error: Optional[str] = str(exc)
            else:
                load_error = None

        if load_error is not None:
            report.generation_errors.append(load_error)
            report.step_metrics.append(GenerationStepMetric(
                step_name="Load Model File",
                success=False,
                elapsed_seconds=t_load.elapsed,
                detail=load_error,
            ))
            return self._finalise_report(report, t_load.elapsed)

        logger.info("Loaded model file: %s (%d top-level keys).", model_path, len(raw_data))
        report.step_metrics.append(GenerationStepMetric(
            step_name="Load Model File",
            success=True,
            elapsed_seconds=t_load.elapsed,
            detail=f"from {Path(model_path).name}",
        ))
        return self._generate_from_raw(raw_data, config_overrides, report, t_load.elapsed)

    def generate_from_raw(
        self,
        raw: Dict[str, Any],
        *,
        config_overrides: Optional[Dict[str, Any]] = None,
    ) -> GenerationReport:
        """Full pipeline from an already-loaded mapping."""
        return self._generate_from_raw(
            copy.deepcopy(raw), config_overrides, GenerationReport(), 0.0
        )

    def _generate_from_raw(
        self,
        raw: Dict[str, Any],
        config_overrides: Optional[Dict[str, Any]],
        report: GenerationReport,
        elapsed_so_far: float,
    ) -> GenerationReport:
        with Timer("parse_models") as t_parse:
            try:
                models, config = parse_raw_models(raw, config_overrides)
            except ValueError as exc:
                parse_error: Optional[str] = str(exc)
            else:
                parse_error = None

        if parse_error is not None:
            report.generation_errors.append(parse_error)
            report.step_metrics.append(GenerationStepMetric(
                step_name="Parse Models",
                success=False,
                elapsed_seconds=t_parse.elapsed,
                detail=parse_error,
            ))
            return self._finalise_report(report, elapsed_so_far + t_parse.elapsed)

        logger.info(
            "Parsed %d model(s), output format: %s.",
            len(models),
            config.output_format.value,
        )
        report.step_metrics.append(GenerationStepMetric(
            step_name="Parse Models",
            success=True,
            elapsed_seconds=t_parse.elapsed,
            detail=f"{len(models)} models parsed",
        ))
        return self._run_pipeline(models, config, report, elapsed_so_far + t_parse.elapsed)

    # -----------------------------------------------------------------
    # Public: generate from in-memory objects
    # -----------------------------------------------------------------

    def generate(
        self,
        models: List[ModelSpec],
        config: Optional[GeneratorConfig] = None,
    ) -> GenerationReport:
        """Full pipeline from pre-parsed model specs and config."""
        return self._run_pipeline(list(models), config or GeneratorConfig(), GenerationReport(), 0.0)

    # -----------------------------------------------------------------
    # Internal: master pipeline
    # -----------------------------------------------------------------

    def _run_pipeline(
        self,
        models: List[ModelSpec],
        config: GeneratorConfig,
        report: GenerationReport,
        elapsed_so_far: float,
    ) -> GenerationReport:
        pipeline_start: float = time.perf_counter()
        report.output_format = config.output_format.value
        report.total_models = len(models)

        for spec in models:
            self._registry.register(spec)

        self._step_assemble(models, config, report)
        self._step_render(config, report)

        total_elapsed: float = elapsed_so_far + time.perf_counter() - pipeline_start
        return self._finalise_report(report, total_elapsed)

    # -----------------------------------------------------------------
    # Pipeline step: Validation & assembly
    # -----------------------------------------------------------------

    def _step_assemble(
        self,
        models: List[ModelSpec],
        config: GeneratorConfig,
        report: GenerationReport,
    ) -> None:
        assembler: ModelAssembler = ModelAssembler(config, self._registry)
        duplicates: int = 0

        with Timer("assembly") as t:
            for spec in models:
                if spec.resolved_name in report.documents:
                    duplicates += 1
                    duplicate: ValidationError = ValidationError(
                        "warning",
                        "DUPLICATE_MODEL_NAME",
                        f"Model '{spec.resolved_name}' is defined more than once; "
                        f"keeping the first definition.",
                        {"model": spec.resolved_name},
                    )
                    report.validation_warnings.append(str(duplicate))
                    continue
                try:
                    result: AssemblyResult = assembler.assemble(spec)
                except Exception as exc:
                    error_msg: str = (
                        f"Assembly of '{spec.resolved_name}' failed: "
                        f"{type(exc).__name__}: {exc}"
                    )
                    report.generation_errors.append(error_msg)
                    logger.error(error_msg, exc_info=True)
                    continue

                report.results[result.model_name] = result
                report.documents[result.model_name] = result.document
                report.validation_errors.extend(str(e) for e in result.issues.errors)
                report.validation_warnings.extend(str(w) for w in result.issues.warnings)
                if len(result.issues):
                    logger.debug(
                        "Issues for '%s':\n%s",
                        result.model_name,
                        result.issues.format_report(include_info=True),
                    )

        error_count: int = len(report.validation_errors)
        warning_count: int = len(report.validation_warnings)
        if error_count:
            detail: str = f"{len(report.documents)} models, {error_count} error(s)"
            for err in report.validation_errors:
                logger.error("  ✗ %s", err)
        elif warning_count:
            detail = f"{len(report.documents)} models, {warning_count} warning(s)"
            for warn in report.validation_warnings:
                logger.warning("  ⚠ %s", warn)
        else:
            detail = f"{len(report.documents)} models, all checks passed"

        report.step_metrics.append(GenerationStepMetric(
            step_name="Validate & Assemble",
            success=error_count == 0 and len(report.documents) + duplicates == len(models),
            elapsed_seconds=t.elapsed,
            detail=detail,
        ))
        logger.info("Assembly complete: %s in %.3fs.", detail, t.elapsed)

    # -----------------------------------------------------------------
    # Pipeline step: Rendering
    # -----------------------------------------------------------------

    def _step_render(self, config: GeneratorConfig, report: GenerationReport) -> None:
        writer: DocumentWriter = get_writer(self._writer_kind, config)
        failures: int = 0

        with Timer("render") as t:
            for name, document in report.documents.items():
                try:
                    report.outputs[name] = writer.write(document)
                except (TypeError, ValueError) as exc:
                    failures += 1
                    error_msg: str = f"Rendering of '{name}' failed: {exc}"
                    report.generation_errors.append(error_msg)
                    logger.error(error_msg)

        report.total_lines = sum(count_lines(text) for text in report.outputs.values())
        report.total_chars = sum(len(text) for text in report.outputs.values())

        report.step_metrics.append(GenerationStepMetric(
            step_name="Render",
            success=failures == 0,
            elapsed_seconds=t.elapsed,
            detail=f"{len(report.outputs)} outputs, ~{report.total_lines:,} lines",
        ))

    # -----------------------------------------------------------------
    # Internal: finalise report
    # -----------------------------------------------------------------

    def _finalise_report(
        self,
        report: GenerationReport,
        total_elapsed: float,
    ) -> GenerationReport:
        """Set final status and timing on the report."""
        report.total_elapsed_seconds = total_elapsed

        has_errors: bool = bool(report.validation_errors or report.generation_errors)
        if self._fail_on_warnings and report.validation_warnings:
            has_errors = True

        report.success = not has_errors
        return report


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "ModelGenerator",
    "ModelRegistry",
    "GenerationReport",
    "GenerationStepMetric",
    "load_model_file",
    "parse_raw_models",
]

logger.debug("extmodelgen.generator loaded — %d public symbols.", len(__all__))
