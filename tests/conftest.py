"""
tests/conftest.py
Shared fixtures for the extmodelgen test suite.

No external mocking libraries are used; file inputs are written into
temporary directories managed by pytest's tmp_path fixture.
"""

from __future__ import annotations

import copy
import json
import pathlib
from typing import Any, Dict

import pytest
import yaml

from extmodelgen.models import GeneratorConfig, ModelSpec, OutputFormat


# ---------------------------------------------------------------------------
# Path helpers
# ---------------------------------------------------------------------------

ROOT_DIR: pathlib.Path = pathlib.Path(__file__).resolve().parent.parent
MODELS_EXAMPLE_PATH: pathlib.Path = ROOT_DIR / "models_example.yaml"


# ---------------------------------------------------------------------------
# Raw metadata fixtures
# ---------------------------------------------------------------------------


@pytest.fixture(scope="session")
def raw_models_dict() -> Dict[str, Any]:
    """Load the reference models_example.yaml once per session."""
    assert MODELS_EXAMPLE_PATH.exists(), (
        f"Reference metadata not found at {MODELS_EXAMPLE_PATH}. "
        "Make sure models_example.yaml is in the project root."
    )
    with open(MODELS_EXAMPLE_PATH, "r", encoding="utf-8") as fh:
        data = yaml.safe_load(fh)
    assert isinstance(data, dict), "Top-level YAML must be a mapping."
    return data


@pytest.fixture()
def models_dict(raw_models_dict: Dict[str, Any]) -> Dict[str, Any]:
    """Return a deep copy so each test can mutate freely."""
    return copy.deepcopy(raw_models_dict)


@pytest.fixture()
def models_yaml_path(models_dict: Dict[str, Any], tmp_path: pathlib.Path) -> pathlib.Path:
    path = tmp_path / "models.yaml"
    with open(path, "w", encoding="utf-8") as fh:
        yaml.safe_dump(models_dict, fh, default_flow_style=False, sort_keys=False)
    return path


@pytest.fixture()
def models_json_path(models_dict: Dict[str, Any], tmp_path: pathlib.Path) -> pathlib.Path:
    path = tmp_path / "models.json"
    path.write_text(json.dumps(models_dict, indent=2), encoding="utf-8")
    return path


# ---------------------------------------------------------------------------
# Model spec fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def minimal_model_dict() -> Dict[str, Any]:
    """One model, one STRING field, nothing else set."""
    return {
        "name": "App.model.Note",
        "fields": [{"name": "title", "type": "STRING"}],
    }


@pytest.fixture()
def minimal_spec(minimal_model_dict: Dict[str, Any]) -> ModelSpec:
    return ModelSpec.model_validate(minimal_model_dict)


@pytest.fixture()
def proxy_model_dict() -> Dict[str, Any]:
    """A model exercising the proxy, reader and writer blocks."""
    return {
        "name": "App.model.Order",
        "idProperty": "orderId",
        "readMethod": "orderService.read",
        "createMethod": "orderService.create",
        "updateMethod": "orderService.update",
        "destroyMethod": "orderService.destroy",
        "paging": True,
        "messageProperty": "msg",
        "successProperty": "ok",
        "totalProperty": "count",
        "writer": "json",
        "writeAllFields": True,
        "fields": [{"name": "orderId", "type": "int"}],
    }


@pytest.fixture()
def proxy_spec(proxy_model_dict: Dict[str, Any]) -> ModelSpec:
    return ModelSpec.model_validate(proxy_model_dict)


# ---------------------------------------------------------------------------
# Config fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def extjs4_config() -> GeneratorConfig:
    return GeneratorConfig(output_format=OutputFormat.EXTJS4)


@pytest.fixture()
def extjs5_config() -> GeneratorConfig:
    return GeneratorConfig(output_format=OutputFormat.EXTJS5)


@pytest.fixture()
def touch2_config() -> GeneratorConfig:
    return GeneratorConfig(output_format=OutputFormat.TOUCH2)
