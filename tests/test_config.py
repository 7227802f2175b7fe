from __future__ import annotations

import json
from pathlib import Path

import pytest

from litschema.config import DEFAULT_SCHEMA_DRAFT, ExtractionConfig
from litschema.errors import ConfigError


@pytest.fixture(autouse=True)
def _isolated_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    # Keep stray .env files and variables out of the tests
    monkeypatch.chdir(tmp_path)
    for name in ("ROOT_ANCHOR", "MAX_LOOKAHEAD", "UNION_MARKERS", "OPTIONAL_MARKERS"):
        monkeypatch.setenv(f"LITSCHEMA_{name}", "")


def _write_json(path: Path, payload: object) -> Path:
    path.write_text(json.dumps(payload), encoding="utf-8")
    return path


def test_defaults() -> None:
    config = ExtractionConfig.load()

    assert config.root_anchor == "pipeline"
    assert config.max_lookahead == 6
    assert config.union_markers == ["one of", "either"]
    assert "defaults to" in config.optional_markers
    assert config.schema_draft == DEFAULT_SCHEMA_DRAFT


def test_markers_are_normalised() -> None:
    config = ExtractionConfig(union_markers=["  One Of ", "", "EITHER"])

    assert config.union_markers == ["one of", "either"]


def test_environment_values(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("LITSCHEMA_UNION_MARKERS", "One Of, alternatively")
    monkeypatch.setenv("LITSCHEMA_MAX_LOOKAHEAD", "3")

    config = ExtractionConfig.load()

    assert config.union_markers == ["one of", "alternatively"]
    assert config.max_lookahead == 3


def test_dotenv_file(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    # Recorded by monkeypatch so the value loaded from .env is removed afterwards
    monkeypatch.delenv("LITSCHEMA_ROOT_ANCHOR")
    (tmp_path / ".env").write_text("LITSCHEMA_ROOT_ANCHOR=job\n", encoding="utf-8")

    assert ExtractionConfig.load().root_anchor == "job"


def test_config_file_overrides_environment(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("LITSCHEMA_ROOT_ANCHOR", "job")
    config_file = _write_json(tmp_path / "litschema.json", {"root_anchor": "step", "max_lookahead": 2})

    config = ExtractionConfig.load(config_file)

    assert config.root_anchor == "step"
    assert config.max_lookahead == 2


def test_explicit_overrides_win(tmp_path: Path) -> None:
    config_file = _write_json(tmp_path / "litschema.json", {"root_anchor": "step"})

    assert ExtractionConfig.load(config_file, root_anchor="task").root_anchor == "task"
    assert ExtractionConfig.load(config_file, root_anchor=None).root_anchor == "step"


def test_invalid_value(tmp_path: Path) -> None:
    config_file = _write_json(tmp_path / "litschema.json", {"max_lookahead": 0})

    with pytest.raises(ConfigError) as excinfo:
        ExtractionConfig.load(config_file)

    assert "max_lookahead" in str(excinfo.value)


def test_empty_marker_list(tmp_path: Path) -> None:
    config_file = _write_json(tmp_path / "litschema.json", {"union_markers": ["  "]})

    with pytest.raises(ConfigError):
        ExtractionConfig.load(config_file)


def test_config_file_must_be_an_object(tmp_path: Path) -> None:
    config_file = _write_json(tmp_path / "litschema.json", ["root_anchor"])

    with pytest.raises(ConfigError):
        ExtractionConfig.load(config_file)


def test_missing_config_file(tmp_path: Path) -> None:
    with pytest.raises(ConfigError):
        ExtractionConfig.load(tmp_path / "absent.json")
