from __future__ import annotations

import os
import subprocess
import sys
from pathlib import Path

import pytest

import pytodomcp
from pytodomcp.config import loader
from pytodomcp.config.loader import load_server_config
from pytodomcp.config.models import ConfigError, ServerConfig
from pytodomcp.mcp.models import Capabilities, ServerInfo


@pytest.fixture(autouse=True)
def no_global_config(monkeypatch):
    monkeypatch.setattr(loader, "_global_candidate_paths", lambda: [])


def test_defaults_without_files(tmp_path):
    cfg = load_server_config(cwd=tmp_path)
    assert cfg.name == "todo"
    assert cfg.store_path is None
    assert cfg.capabilities == Capabilities(tools=True, resources=False, prompts=False, enforce=True)
    assert cfg.framing == "auto"
    assert cfg.log_level == "INFO"
    assert cfg.loaded_from == []


def test_project_config(tmp_path):
    (tmp_path / "pytodomcp.yaml").write_text(
        "server:\n  name: tasks\n"
        "store:\n  path: data/store.json\n"
        "capabilities:\n  prompts: true\n  enforce: false\n"
        "transport:\n  framing: content-length\n"
        "logging:\n  level: debug\n",
        encoding="utf-8",
    )
    cfg = load_server_config(cwd=tmp_path)
    assert cfg.name == "tasks"
    assert cfg.store_path == (tmp_path / "data" / "store.json").resolve()
    assert cfg.capabilities.prompts is True
    assert cfg.capabilities.tools is True
    assert cfg.capabilities.enforce is False
    assert cfg.framing == "content-length"
    assert cfg.log_level == "DEBUG"
    assert cfg.loaded_from == [tmp_path / "pytodomcp.yaml"]


def test_first_project_file_wins(tmp_path):
    (tmp_path / "pytodomcp.yaml").write_text("server: {name: first}\n", encoding="utf-8")
    (tmp_path / ".pytodomcp.yaml").write_text("server: {name: second}\n", encoding="utf-8")
    assert load_server_config(cwd=tmp_path).name == "first"


def test_explicit_overrides_project(tmp_path):
    (tmp_path / "pytodomcp.yaml").write_text("server: {name: project, version: '2'}\n", encoding="utf-8")
    explicit = tmp_path / "other.yaml"
    explicit.write_text("server: {name: explicit}\n", encoding="utf-8")
    cfg = load_server_config(cwd=tmp_path, explicit_path=explicit)
    assert cfg.name == "explicit"
    assert cfg.version == "2"


def test_global_config_is_lowest_priority(tmp_path, monkeypatch):
    g = tmp_path / "global.yaml"
    g.write_text("server: {name: global, version: g}\n", encoding="utf-8")
    monkeypatch.setattr(loader, "_global_candidate_paths", lambda: [g])
    proj = tmp_path / "proj"
    proj.mkdir()
    (proj / "pytodomcp.yaml").write_text("server: {name: project}\n", encoding="utf-8")
    cfg = load_server_config(cwd=proj)
    assert cfg.name == "project"
    assert cfg.version == "g"


def test_missing_explicit_config(tmp_path):
    with pytest.raises(ConfigError):
        load_server_config(cwd=tmp_path, explicit_path=tmp_path / "nope.yaml")


def test_env_placeholders(tmp_path, monkeypatch):
    monkeypatch.setenv("TODO_HOME", str(tmp_path / "home"))
    (tmp_path / "pytodomcp.yaml").write_text("store:\n  path: ${TODO_HOME}/store.json\n", encoding="utf-8")
    cfg = load_server_config(cwd=tmp_path)
    assert cfg.store_path == tmp_path / "home" / "store.json"


def test_missing_env_placeholder(tmp_path, monkeypatch):
    monkeypatch.delenv("TODO_MISSING_VAR", raising=False)
    (tmp_path / "pytodomcp.yaml").write_text("store:\n  path: ${TODO_MISSING_VAR}/s.json\n", encoding="utf-8")
    with pytest.raises(ConfigError):
        load_server_config(cwd=tmp_path)


def test_invalid_yaml(tmp_path):
    (tmp_path / "pytodomcp.yaml").write_text("server: [unclosed\n", encoding="utf-8")
    with pytest.raises(ConfigError):
        load_server_config(cwd=tmp_path)


def test_non_mapping_yaml(tmp_path):
    (tmp_path / "pytodomcp.yaml").write_text("- a\n- b\n", encoding="utf-8")
    with pytest.raises(ConfigError):
        load_server_config(cwd=tmp_path)


def test_wrong_types_keep_defaults():
    cfg = ServerConfig.from_obj(
        {
            "server": {"name": 5},
            "store": "nope",
            "capabilities": {"tools": "yes", "resources": True},
            "transport": {"framing": "xml"},
            "logging": {"level": "loud"},
        }
    )
    assert cfg.name == "todo"
    assert cfg.store_path is None
    assert cfg.capabilities == Capabilities(tools=True, resources=True)
    assert cfg.framing == "auto"
    assert cfg.log_level == "INFO"


def test_server_info():
    info = ServerConfig(name="n", version="v", instructions="i").server_info()
    assert (info.name, info.version, info.instructions) == ("n", "v", "i")


def test_default_server_info_matches_protocol_defaults():
    assert ServerConfig().server_info() == ServerInfo()


def test_config_layer_does_not_load_the_protocol_server():
    src = Path(pytodomcp.__file__).resolve().parent.parent
    code = "import sys, pytodomcp.config.models; print('pytodomcp.mcp.server' in sys.modules)"
    env = {**os.environ, "PYTHONPATH": str(src)}
    out = subprocess.run([sys.executable, "-c", code], env=env, capture_output=True, text=True, check=True)
    assert out.stdout.strip() == "False"
