"""
tests/test_assembler.py
Unit tests for the descriptor assembly engine.

Tests cover:
- Model header (idProperty, version / client-id properties, extend)
- Proxy, reader and writer blocks for every output format
- Field emission (types, defaults, flags, references)
- Associations with default keys and accessors
- Validators for every output format and inclusion policy
- Determinism and best-effort assembly on configuration errors
"""

from __future__ import annotations

import copy
from typing import Any, Dict

import pytest

from extmodelgen.assembler import (
    ModelAssembler,
    assemble,
    assemble_association,
    assemble_reference,
    assemble_validation,
    default_foreign_key,
)
from extmodelgen.models import (
    UNDEFINED,
    AssociationSpec,
    FieldSpec,
    GeneratorConfig,
    IncludeValidation,
    ModelSpec,
    OutputFormat,
    RawLiteral,
    ReferenceSpec,
    ValidationSpec,
)


def _model(**data: Any) -> ModelSpec:
    return ModelSpec.model_validate({"name": "App.model.Test", **data})


def _field(config: GeneratorConfig = GeneratorConfig(), **data: Any) -> Dict[str, Any]:
    return ModelAssembler(config).assemble_field(FieldSpec.model_validate({"name": "f", **data}))


# ===========================================================================
# Model header
# ===========================================================================


class TestHeader:

    def test_minimal_model(self, minimal_spec: ModelSpec) -> None:
        document = assemble(minimal_spec)
        assert document == {
            "name": "App.model.Note",
            "extend": "Ext.data.Model",
            "idProperty": "id",
            "fields": [{"name": "title", "type": "string"}],
        }
        assert "versionProperty" not in document
        assert "clientIdProperty" not in document

    def test_optional_properties(self) -> None:
        document = assemble(
            _model(
                extend="App.model.Base",
                versionProperty="version",
                clientIdProperty="clientId",
                identifier="uuid",
                hasMany=["App.model.Tag"],
            )
        )
        assert document["extend"] == "App.model.Base"
        assert document["versionProperty"] == "version"
        assert document["clientIdProperty"] == "clientId"
        assert document["identifier"] == "uuid"
        assert document["hasMany"] == ["App.model.Tag"]

    def test_default_extend_from_config(self, minimal_spec: ModelSpec) -> None:
        document = assemble(minimal_spec, GeneratorConfig(default_extend="App.model.Base"))
        assert document["extend"] == "App.model.Base"

    def test_header_key_order(self) -> None:
        document = assemble(_model(versionProperty="v", readMethod="svc.read"))
        assert list(document) == ["name", "extend", "idProperty", "versionProperty", "proxy", "fields"]

    def test_touch2_nests_config(self, minimal_spec: ModelSpec, touch2_config: GeneratorConfig) -> None:
        document = assemble(minimal_spec, touch2_config)
        assert list(document) == ["name", "extend", "config"]
        assert document["config"]["idProperty"] == "id"
        assert document["config"]["fields"] == [{"name": "title", "type": "string"}]


# ===========================================================================
# Proxy
# ===========================================================================


class TestProxy:

    def test_no_proxy_without_triggers(self, minimal_spec: ModelSpec) -> None:
        assert "proxy" not in assemble(minimal_spec)

    def test_read_only_uses_direct_fn(self) -> None:
        proxy = assemble(_model(readMethod="bookService.read"))["proxy"]
        assert proxy == {"type": "direct", "directFn": RawLiteral("bookService.read")}
        assert isinstance(proxy["directFn"], RawLiteral)

    def test_crud_uses_api(self, proxy_spec: ModelSpec) -> None:
        proxy = assemble(proxy_spec)["proxy"]
        assert proxy["type"] == "direct"
        assert proxy["idParam"] == "orderId"
        assert proxy["api"] == {
            "read": "orderService.read",
            "create": "orderService.create",
            "update": "orderService.update",
            "destroy": "orderService.destroy",
        }
        assert "directFn" not in proxy

    def test_api_only_lists_set_methods(self) -> None:
        proxy = assemble(_model(readMethod="s.r", updateMethod="s.u"))["proxy"]
        assert list(proxy["api"]) == ["read", "update"]

    def test_create_without_read_uses_api(self) -> None:
        proxy = assemble(_model(createMethod="s.c"))["proxy"]
        assert proxy["api"] == {"create": "s.c"}

    def test_quoted_api(self) -> None:
        config = GeneratorConfig(surround_api_with_quotes=True)
        proxy = assemble(_model(readMethod="s.r", destroyMethod="s.d"), config)["proxy"]
        assert not any(isinstance(v, RawLiteral) for v in proxy["api"].values())

    def test_no_direct_type_without_methods(self) -> None:
        proxy = assemble(_model(writer="json"))["proxy"]
        assert "type" not in proxy
        assert proxy["writer"] == {"type": "json"}

    @pytest.mark.parametrize(
        "output_format, expected",
        [
            (OutputFormat.EXTJS4, UNDEFINED),
            (OutputFormat.EXTJS5, ""),
            (OutputFormat.TOUCH2, False),
        ],
    )
    def test_disable_paging_parameters(self, output_format: OutputFormat, expected: Any) -> None:
        document = assemble(
            _model(disablePagingParameters=True),
            GeneratorConfig(output_format=output_format),
        )
        body = document.get("config", document)
        proxy = body["proxy"]
        values = [proxy[p] for p in ("pageParam", "startParam", "limitParam")]
        assert all(type(v) is type(expected) and v == expected for v in values)

    def test_disable_paging_parameters_with_direct_proxy(self) -> None:
        proxy = assemble(_model(readMethod="s.r", disablePagingParameters=True))["proxy"]
        assert proxy["type"] == "direct"
        assert proxy["pageParam"] is UNDEFINED


class TestReader:

    def test_paging_root_extjs4(self) -> None:
        reader = assemble(_model(paging=True))["proxy"]["reader"]
        assert reader == {"root": "records"}

    def test_paging_root_extjs5(self, extjs5_config: GeneratorConfig) -> None:
        reader = assemble(_model(paging=True), extjs5_config)["proxy"]["reader"]
        assert reader == {"rootProperty": "records"}

    def test_root_property_wins_over_paging(self) -> None:
        reader = assemble(_model(paging=True, rootProperty="rows"))["proxy"]["reader"]
        assert reader["root"] == "rows"

    def test_full_reader(self, proxy_spec: ModelSpec) -> None:
        reader = assemble(proxy_spec)["proxy"]["reader"]
        assert reader == {
            "root": "records",
            "messageProperty": "msg",
            "successProperty": "ok",
            "totalProperty": "count",
        }

    def test_reader_type(self) -> None:
        reader = assemble(_model(reader="xml"))["proxy"]["reader"]
        assert reader == {"type": "xml"}

    def test_reader_settings_without_proxy_are_dropped(self) -> None:
        result = ModelAssembler().assemble(_model(rootProperty="rows"))
        assert "proxy" not in result.document
        assert "PROXY_SETTINGS_IGNORED" in result.issues.codes()


class TestWriter:

    def test_writer_block(self, proxy_spec: ModelSpec) -> None:
        writer = assemble(proxy_spec)["proxy"]["writer"]
        assert writer == {"type": "json", "writeAllFields": True}

    def test_write_all_fields_false_is_emitted(self) -> None:
        writer = assemble(_model(writer="json", writeAllFields=False))["proxy"]["writer"]
        assert writer["writeAllFields"] is False

    def test_data_options_in_extjs5(self, extjs5_config: GeneratorConfig) -> None:
        spec = _model(writer="json", allDataOptions={"associated": True}, partialDataOptions={})
        writer = assemble(spec, extjs5_config)["proxy"]["writer"]
        assert writer["allDataOptions"] == {
            "associated": True,
            "changes": False,
            "critical": False,
            "persist": True,
        }
        assert writer["partialDataOptions"] == {
            "associated": False,
            "changes": True,
            "critical": True,
            "persist": False,
        }

    def test_data_options_dropped_in_extjs4(self) -> None:
        result = ModelAssembler().assemble(_model(writer="json", allDataOptions={}))
        assert result.document["proxy"]["writer"] == {"type": "json"}
        assert "DATA_OPTIONS_IGNORED" in result.issues.codes()


# ===========================================================================
# Fields
# ===========================================================================


class TestFields:

    def test_custom_type_wins(self) -> None:
        assert _field(type="int", customType="App.type.Money", nativeType="int")["type"] == (
            "App.type.Money"
        )

    def test_autodetect_disabled(self) -> None:
        config = GeneratorConfig(autodetect_types=False)
        assert _field(config, nativeType="java.lang.Long")["type"] == "auto"

    def test_autodetected_type(self) -> None:
        assert _field(nativeType="java.lang.Long")["type"] == "int"

    def test_defaults_are_omitted(self) -> None:
        assert _field(type="string") == {"name": "f", "type": "string"}

    def test_string_default(self) -> None:
        block = _field(type="string", defaultValue="n/a")
        assert block["defaultValue"] == "n/a"
        assert not isinstance(block["defaultValue"], RawLiteral)

    def test_numeric_default_is_raw(self) -> None:
        block = _field(type="int", defaultValue=0)
        assert isinstance(block["defaultValue"], RawLiteral)
        assert block["defaultValue"] == "0"

    def test_undefined_default(self) -> None:
        assert _field(type="int", defaultValue="undefined")["defaultValue"] is UNDEFINED

    @pytest.mark.parametrize("field_type, default", [("int", "abc"), ("boolean", "alert(1)")])
    def test_non_literal_default_is_quoted_and_reported(self, field_type: str, default: str) -> None:
        spec = _model(fields=[{"name": "f", "type": field_type, "defaultValue": default}])
        result = ModelAssembler().assemble(spec)
        value = result.document["fields"][0]["defaultValue"]
        assert value == default
        assert not isinstance(value, RawLiteral)
        assert result.issues.codes() == ["INVALID_DEFAULT_VALUE"]
        assert not result.has_errors

    def test_date_format_only_for_dates(self) -> None:
        assert _field(type="date", dateFormat="Y-m-d")["dateFormat"] == "Y-m-d"
        assert "dateFormat" not in _field(type="string", dateFormat="Y-m-d")

    def test_use_null_key_per_format(self, extjs5_config: GeneratorConfig) -> None:
        assert _field(type="int", useNull=True)["useNull"] is True
        assert _field(extjs5_config, type="int", allowNull=True)["allowNull"] is True
        assert "useNull" not in _field(extjs5_config, type="int", useNull=True)

    def test_nullability_conflict_skips_only_the_flag(self) -> None:
        block = _field(type="int", useNull=True, allowNull=False, allowBlank=False)
        assert "useNull" not in block
        assert "allowNull" not in block
        assert block["allowBlank"] is False

    def test_false_null_flag_is_omitted(self) -> None:
        assert "useNull" not in _field(type="int", useNull=False)

    def test_all_flags(self) -> None:
        block = _field(
            type="string",
            allowBlank=False,
            unique=True,
            mapping="data.value",
            persist=False,
            critical=True,
            depends=["a", "b"],
            convert="function(v) { return v.trim(); }",
            calculate="function(d) { return d.a + d.b; }",
        )
        assert list(block) == [
            "name",
            "type",
            "allowBlank",
            "unique",
            "mapping",
            "persist",
            "critical",
            "depends",
            "convert",
            "calculate",
        ]
        assert isinstance(block["convert"], RawLiteral)
        assert isinstance(block["calculate"], RawLiteral)

    def test_reference(self) -> None:
        block = _field(type="int", reference={"parent": "App.model.Order", "inverse": "lines"})
        assert block["reference"] == {"parent": "App.model.Order", "inverse": "lines"}

    def test_conflicting_reference_is_skipped(self) -> None:
        spec = _model(
            fields=[
                {"name": "order", "type": "int", "reference": {"child": "A", "parent": "B"}},
            ]
        )
        result = ModelAssembler().assemble(spec)
        assert result.document["fields"] == [{"name": "order", "type": "int"}]
        assert result.has_errors
        assert result.issues.codes() == ["REFERENCE_OWNERSHIP_CONFLICT"]

    def test_field_order_is_preserved(self) -> None:
        spec = _model(fields=[{"name": n} for n in ("z", "a", "m")])
        assert [f["name"] for f in assemble(spec)["fields"]] == ["z", "a", "m"]


class TestReference:

    def test_empty_reference_is_absent(self) -> None:
        assert assemble_reference(ReferenceSpec()) is None

    def test_overrides_only_when_set(self) -> None:
        block = assemble_reference(ReferenceSpec(type="App.model.User", role="owner"))
        assert block == {"type": "App.model.User", "role": "owner"}

    def test_conflict_is_absent(self) -> None:
        assert assemble_reference(ReferenceSpec(type="A", parent="B")) is None


# ===========================================================================
# Associations
# ===========================================================================


class TestAssociations:

    def test_has_many_default_foreign_key(self) -> None:
        assoc = AssociationSpec(type="hasMany", property_name="books", model="App.model.Book")
        block = assemble_association(assoc, "Author")
        assert block["foreignKey"] == "author_id"
        assert block["name"] == "books"
        assert "getterName" not in block and "setterName" not in block

    def test_has_many_foreign_key_uses_simple_owner_name(self) -> None:
        assoc = AssociationSpec(type="hasMany", property_name="books", model="B")
        assert default_foreign_key(assoc, "App.model.BookAuthor") == "bookauthor_id"

    @pytest.mark.parametrize("kind", ["belongsTo", "hasOne"])
    def test_single_valued_defaults(self, kind: str) -> None:
        assoc = AssociationSpec(type=kind, property_name="category", model="App.model.Category")
        block = assemble_association(assoc, "App.model.Product")
        assert block["foreignKey"] == "category_id"
        assert block["setterName"] == "setCategory"
        assert block["getterName"] == "getCategory"
        assert "autoLoad" not in block

    def test_explicit_values(self) -> None:
        assoc = AssociationSpec(
            type="belongsTo",
            property_name="category",
            model="App.model.Category",
            foreign_key="catId",
            primary_key="code",
            setter_name="assign",
            getter_name="fetch",
            instance_name="cat",
        )
        block = assemble_association(assoc, "App.model.Product")
        assert block == {
            "type": "belongsTo",
            "model": "App.model.Category",
            "associationKey": "category",
            "foreignKey": "catId",
            "primaryKey": "code",
            "setterName": "assign",
            "getterName": "fetch",
            "instanceName": "cat",
        }

    def test_auto_load_only_for_has_many(self) -> None:
        many = AssociationSpec(type="hasMany", property_name="a", model="A", auto_load=True)
        one = AssociationSpec(type="hasOne", property_name="a", model="A", auto_load=True)
        assert assemble_association(many, "O")["autoLoad"] is True
        assert "autoLoad" not in assemble_association(one, "O")

    def test_model_name_resolver(self) -> None:
        assoc = AssociationSpec(type="hasOne", property_name="a", model="com.example.A")
        block = assemble_association(assoc, "O", lambda t: "App.model." + t.rsplit(".", 1)[-1])
        assert block["model"] == "App.model.A"

    def test_associations_in_document(self) -> None:
        spec = _model(
            associations=[
                {"type": "hasMany", "propertyName": "lines", "model": "App.model.Line"},
            ]
        )
        document = assemble(spec)
        assert document["associations"][0]["foreignKey"] == "test_id"

    def test_no_associations_key_when_empty(self, minimal_spec: ModelSpec) -> None:
        assert "associations" not in assemble(minimal_spec)


# ===========================================================================
# Validators
# ===========================================================================


_VALIDATED: Dict[str, Any] = {
    "fields": [{"name": "title", "type": "string"}, {"name": "price", "type": "float"}],
    "validations": [
        {"type": "presence", "field": "title"},
        {"type": "length", "field": "title", "parameters": {"min": 1, "max": 50}},
        {"type": "range", "field": "price", "parameters": {"min": "0.5"}},
        {"type": "generic", "field": "title", "parameters": {"type": "App.validator.Isbn", "strict": True}},
    ],
}


class TestValidators:

    def test_extjs4_validations_list(self) -> None:
        document = assemble(_model(**copy.deepcopy(_VALIDATED)))
        assert document["validations"] == [
            {"type": "presence", "field": "title"},
            {"type": "length", "field": "title", "min": "1", "max": "50"},
            {"type": "range", "field": "price", "min": "0.5"},
            {"type": "App.validator.Isbn", "field": "title", "strict": "true"},
        ]
        assert isinstance(document["validations"][1]["min"], RawLiteral)
        assert "validators" not in document

    def test_extjs5_validators_by_field(self, extjs5_config: GeneratorConfig) -> None:
        document = assemble(_model(**copy.deepcopy(_VALIDATED)), extjs5_config)
        assert document["validators"] == {
            "title": [
                {"type": "presence"},
                {"type": "length", "min": "1", "max": "50"},
                {"type": "App.validator.Isbn", "strict": "true"},
            ],
            "price": [{"type": "range", "min": "0.5"}],
        }
        assert "validations" not in document

    def test_touch2_validations_under_config(self, touch2_config: GeneratorConfig) -> None:
        document = assemble(_model(**copy.deepcopy(_VALIDATED)), touch2_config)
        assert len(document["config"]["validations"]) == 4

    def test_builtin_policy(self) -> None:
        config = GeneratorConfig(include_validation=IncludeValidation.BUILTIN)
        document = assemble(_model(**copy.deepcopy(_VALIDATED)), config)
        assert [v["type"] for v in document["validations"]] == ["presence", "length"]

    def test_none_policy(self) -> None:
        config = GeneratorConfig(include_validation=IncludeValidation.NONE)
        assert "validations" not in assemble(_model(**copy.deepcopy(_VALIDATED)), config)

    def test_inclusion_list_becomes_array(self) -> None:
        block = assemble_validation(
            ValidationSpec(type="inclusion", field="size", parameters={"list": "S, M ,L"})
        )
        assert block == {"type": "inclusion", "list": ["S", "M", "L"]}

    def test_format_matcher_is_raw(self) -> None:
        block = assemble_validation(
            ValidationSpec(type="format", field="code", parameters={"matcher": "/^[A-Z]{3}$/"})
        )
        assert isinstance(block["matcher"], RawLiteral)

    def test_malformed_validator_still_emitted(self) -> None:
        spec = _model(
            fields=[{"name": "price", "type": "float", "allowBlank": False}],
            validations=[
                {"type": "digits", "field": "price", "parameters": {"integer": "2", "fraction": "abc"}}
            ],
        )
        result = ModelAssembler().assemble(spec)
        assert result.issues.codes() == ["MALFORMED_VALIDATOR"]
        assert not result.has_errors
        assert result.document["fields"] == [{"name": "price", "type": "float", "allowBlank": False}]

    def test_parameter_named_field_keeps_target(self) -> None:
        spec = _model(
            fields=[{"name": "title"}],
            validations=[
                {"type": "length", "field": "title", "parameters": {"min": "1", "field": "x"}}
            ],
        )
        result = ModelAssembler().assemble(spec)
        assert result.document["validations"] == [{"type": "length", "field": "title", "min": "1"}]
        assert "MALFORMED_VALIDATOR" in result.issues.codes()

    def test_parameter_named_type_keeps_kind(self, touch2_config: GeneratorConfig) -> None:
        spec = _model(
            fields=[{"name": "title"}],
            validations=[{"type": "presence", "field": "title", "parameters": {"type": "email"}}],
        )
        result = ModelAssembler(touch2_config).assemble(spec)
        assert result.document["config"]["validations"] == [{"type": "presence", "field": "title"}]
        assert result.issues.codes() == ["MALFORMED_VALIDATOR"]

    def test_reserved_parameters_dropped_from_grouped_validators(
        self, extjs5_config: GeneratorConfig
    ) -> None:
        spec = _model(
            fields=[{"name": "title"}],
            validations=[
                {"type": "email", "field": "title", "parameters": {"field": "x", "type": "y"}}
            ],
        )
        document = assemble(spec, extjs5_config)
        assert document["validators"] == {"title": [{"type": "email"}]}
        assert result.document["validations"] == [
            {"type": "digits", "field": "price", "integer": "2", "fraction": "abc"}
        ]


# ===========================================================================
# Determinism
# ===========================================================================


class TestDeterminism:

    def test_reassembly_is_identical(self, proxy_spec: ModelSpec) -> None:
        assembler = ModelAssembler(GeneratorConfig(output_format=OutputFormat.EXTJS5))
        first = assembler.assemble(proxy_spec).document
        second = assembler.assemble(proxy_spec).document
        assert first == second
        assert repr(first) == repr(second)

    def test_document_is_a_fresh_tree(self, minimal_spec: ModelSpec) -> None:
        first = assemble(minimal_spec)
        first["fields"].append({"name": "extra"})
        assert len(assemble(minimal_spec)["fields"]) == 1
