from __future__ import annotations

import pytest

from agentdesk.core.config.loader import load_app_config


def test_config_loader_merges_defaults_and_instance(tmp_path):
    defaults = tmp_path / "defaults.yaml"
    defaults.write_text(
        """
instance:
  name: agentdesk
environment: dev
runtime:
  backend_timeout_seconds: 20
  delegation_history_window: 10
""".strip(),
        encoding="utf-8",
    )

    instance = tmp_path / "instance.yaml"
    instance.write_text(
        """
environment: prod
runtime:
  backend_timeout_seconds: 5
""".strip(),
        encoding="utf-8",
    )

    cfg = load_app_config(defaults_path=defaults, instance_path=instance)
    assert cfg.instance.name == "agentdesk"
    assert cfg.environment == "prod"
    assert cfg.runtime.backend_timeout_seconds == 5
    assert cfg.runtime.delegation_history_window == 10
    assert [a.id for a in cfg.agents] == ["text-generator", "data-processor", "decision-maker", "script-launcher"]


def test_shipped_defaults_load(monkeypatch):
    monkeypatch.delenv("AGENTDESK_CONFIG_FILE", raising=False)
    cfg = load_app_config()
    assert cfg.runtime.coordinator_id == "mother-agent"
    assert cfg.files.max_bytes == 1024 * 1024
    by_id = {a.id: a for a in cfg.agents}
    assert by_id["data-processor"].config.temperature == 0.2
    assert "json analysis" in by_id["data-processor"].capabilities


def test_env_overrides(tmp_path, monkeypatch):
    defaults = tmp_path / "defaults.yaml"
    defaults.write_text("environment: dev\n", encoding="utf-8")
    monkeypatch.setenv("AGENTDESK_ENVIRONMENT", "staging")
    monkeypatch.setenv("AGENTDESK_FILES_DIR", str(tmp_path / "workspace"))

    cfg = load_app_config(defaults_path=defaults)
    assert cfg.environment == "staging"
    assert cfg.files.root_dir == str(tmp_path / "workspace")


def test_config_loader_validation_error_is_clear(tmp_path):
    defaults = tmp_path / "defaults.yaml"
    defaults.write_text("runtime:\n  backend_timeout_seconds: bad", encoding="utf-8")

    with pytest.raises(ValueError, match="Invalid AgentDesk configuration"):
        load_app_config(defaults_path=defaults)
