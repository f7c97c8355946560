from pathlib import Path

import pytest

from dictionary.config import DictConfig, load_config


def test_load_config_defaults(tmp_path):
    path = tmp_path / "config.yml"
    path.write_text("sensitivity: accent", encoding="utf-8")

    cfg = load_config(path)

    assert isinstance(cfg, DictConfig)
    assert cfg.sensitivity == "accent"
    assert cfg.dict_path == Path("data") / "dictdata.json"
    assert cfg.atomic_write is True
    assert cfg.strict_load is False


def test_env_overrides(monkeypatch, tmp_path):
    source = tmp_path / "config.yml"
    source.write_text("data_dir: somewhere", encoding="utf-8")

    monkeypatch.setenv("DATA_PATH", str(tmp_path / "data"))
    monkeypatch.setenv("DICT_STRICT_LOAD", "true")
    monkeypatch.setenv("DICT_FLUSH_TIMEOUT_SEC", "1.5")
    monkeypatch.setenv("DEBUG_ENABLE", "false")

    cfg = load_config(source)

    assert cfg.dict_path == tmp_path / "data" / "dictdata.json"
    assert cfg.strict_load is True
    assert cfg.flush_timeout_sec == 1.5
    assert cfg.debug is False


def test_missing_config_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "nope.yml")


def test_invalid_sensitivity(tmp_path):
    path = tmp_path / "config.yml"
    path.write_text("sensitivity: loud", encoding="utf-8")

    with pytest.raises(ValueError):
        load_config(path)


def test_shipped_defaults_load():
    cfg = load_config(Path(__file__).parent.parent / "config" / "dictionary.defaults.yml")
    assert cfg.sensitivity == "base"
    assert cfg.dict_file == "dictdata.json"
