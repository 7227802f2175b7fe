from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest

from litschema import ExtractionConfig, LitSchemaGenerator, MalformedMarkup, generate_schema
from litschema.utils import check_schema_document, validate_config


CORPUS = [
    (
        "pipeline.lit",
        "# Pipeline {#pipeline}\n"
        "\n"
        "A pipeline is a set of jobs.\n"
        "\n"
        "- jobs: [(job, #job)]\n"
        "    The jobs to run.\n"
        "- groups?: [string]\n"
        "    Job groups.\n",
    ),
    (
        "jobs.lit",
        "### Job {#job}\n"
        "\n"
        "- name: string\n"
        "    Job name.\n"
        "- plan: [step]\n"
        "    Steps to run.\n",
    ),
    (
        "steps.lit",
        "### Step {#step}\n"
        "\n"
        "A step is one of (Do step, #do-step), (Task, #task).\n"
        "\n"
        "### Do step {#do-step}\n"
        "\n"
        "- do: [step]\n"
        "    Nested steps.\n"
        "\n"
        "### Task {#task}\n"
        "\n"
        "- task: string\n"
        "    Name of the task.\n"
        "- privileged: boolean\n"
        "    Run privileged. Defaults to `false`.\n",
    ),
]


def test_generate_pipeline_schema() -> None:
    result = generate_schema(CORPUS)

    schema = result.schema_document
    assert schema["$ref"] == "#/$defs/pipeline"
    assert schema["$defs"]["pipeline"]["description"] == "A pipeline is a set of jobs."
    assert schema["$defs"]["pipeline"]["required"] == ["jobs"]
    assert check_schema_document(schema) == []

    assert result.total_documents == 3
    assert result.total_anchors == 5
    assert result.types_by_kind == {"array": 4, "object": 4, "scalar": 2, "union": 1}


def test_generated_schema_validates_configs() -> None:
    schema = generate_schema(CORPUS).schema_document

    valid = {
        "jobs": [
            {"name": "build", "plan": [{"task": "unit"}, {"do": [{"task": "nested", "privileged": True}]}]},
        ],
    }
    passed, errors = validate_config(valid, schema)
    assert passed, errors

    passed, errors = validate_config({"jobs": [{"plan": []}]}, schema)
    assert not passed
    assert errors[0].startswith("jobs.0")
    assert "'name' is a required property" in errors[0]


def test_parallel_parsing_gives_identical_output() -> None:
    sequential = generate_schema(CORPUS, workers=1).schema_document
    parallel = generate_schema(CORPUS, workers=4).schema_document

    assert json.dumps(sequential) == json.dumps(parallel)


def test_custom_root() -> None:
    result = generate_schema(CORPUS, ExtractionConfig(root_anchor="step"))

    assert result.schema_document["$ref"] == "#/$defs/step"
    assert result.root == "step"


def test_parse_errors_abort_the_run(caplog: pytest.LogCaptureFixture) -> None:
    corpus = CORPUS + [
        ("z-bad.lit", "```yaml\nnever closed\n"),
        ("z-worse.lit", "{- never closed\n"),
    ]

    with caplog.at_level(logging.ERROR, logger="litschema.generator"):
        with pytest.raises(MalformedMarkup) as excinfo:
            generate_schema(corpus)

    assert excinfo.value.path == "z-bad.lit"
    assert "z-worse.lit" in caplog.text


def test_duplicates_and_unresolved_are_reported() -> None:
    corpus = CORPUS + [
        ("zz.lit", "### Job again {#job}\n\nSee (Nowhere, #nowhere).\n"),
    ]

    result = generate_schema(corpus)

    assert [d.anchor for d in result.duplicates] == ["job"]
    assert [r.target for r in result.unresolved] == ["nowhere"]


def test_generate_from_directory(tmp_path: Path) -> None:
    for name, text in CORPUS:
        (tmp_path / name).write_text(text, encoding="utf-8")

    result = LitSchemaGenerator().generate_from_directory(tmp_path)

    assert result.schema_document == generate_schema(CORPUS).schema_document
