from __future__ import annotations

from pathlib import Path

from litschema.utils import check_schema_document, collect_refs, load_config_file, validate_config


SCHEMA = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "$defs": {
        "job": {
            "type": "object",
            "properties": {"name": {"$ref": "#/$defs/string"}},
            "required": ["name"],
        },
        "string": {"type": "string"},
    },
    "$ref": "#/$defs/job",
}


def test_collect_refs_in_document_order() -> None:
    assert collect_refs(SCHEMA) == ["#/$defs/string", "#/$defs/job"]


def test_valid_schema_has_no_problems() -> None:
    assert check_schema_document(SCHEMA) == []


def test_dangling_reference_is_reported() -> None:
    schema = {"$defs": {}, "$ref": "#/$defs/missing"}

    assert check_schema_document(schema) == ["Dangling reference: #/$defs/missing"]


def test_invalid_schema_is_reported() -> None:
    problems = check_schema_document({"type": 5})

    assert len(problems) == 1
    assert problems[0].startswith("Invalid schema:")


def test_meta_validation_follows_declared_draft() -> None:
    draft4 = {"$schema": "http://json-schema.org/draft-04/schema#", "minimum": 1, "exclusiveMinimum": True}
    undeclared = {"minimum": 1, "exclusiveMinimum": True}

    assert check_schema_document(draft4) == []
    assert len(check_schema_document(undeclared)) == 1


def test_validate_config() -> None:
    assert validate_config({"name": "build"}, SCHEMA) == (True, [])

    passed, errors = validate_config({"name": 3}, SCHEMA)
    assert not passed
    assert errors == ["name: 3 is not of type 'string'"]

    passed, errors = validate_config({}, SCHEMA)
    assert errors == ["<root>: 'name' is a required property"]


def test_load_config_file(tmp_path: Path) -> None:
    yaml_file = tmp_path / "pipeline.yml"
    yaml_file.write_text("jobs:\n  - name: build\n", encoding="utf-8")
    json_file = tmp_path / "pipeline.json"
    json_file.write_text('{"jobs": [{"name": "build"}]}', encoding="utf-8")

    assert load_config_file(yaml_file) == {"jobs": [{"name": "build"}]}
    assert load_config_file(json_file) == load_config_file(yaml_file)
