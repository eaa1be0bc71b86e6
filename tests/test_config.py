import io
from datetime import timedelta
from pathlib import Path

import pytest

from infra_integrations.builder import IntegrationBuilder
from infra_integrations.config import IntegrationConfig, load_config
from infra_integrations.errors import ConfigurationError
from infra_integrations.integration import DisabledLock
from infra_integrations.persist import FileStore, InMemoryStore


def write_config(tmp_path: Path, body: str) -> Path:
    path = tmp_path / "integration.yaml"
    path.write_text(body, encoding="utf-8")
    return path


def test_load_config_applies_defaults(tmp_path: Path):
    path = write_config(tmp_path, "name: com.example.nginx\nversion: 2.0.0\n")

    config = load_config(path)

    assert config.name == "com.example.nginx"
    assert config.synchronized is False
    assert config.store.kind == "file"
    assert config.store.ttl_seconds == 86400
    assert config.logging.level == "info"


def test_load_config_missing_file(tmp_path: Path):
    with pytest.raises(ConfigurationError, match="does not exist"):
        load_config(tmp_path / "missing.yaml")


@pytest.mark.parametrize(
    "body",
    [
        "- just\n- a list\n",
        "version: 1.0\n",
        "name: ' '\nversion: 1.0\n",
        "name: x\nversion: '1'\nstore:\n  kind: redis\n",
        "name: x\nversion: '1'\nstore:\n  ttl_seconds: 0\n",
    ],
)
def test_load_config_rejects_invalid_content(tmp_path: Path, body: str):
    with pytest.raises(ConfigurationError):
        load_config(write_config(tmp_path, body))


def test_builder_from_config_file_store(tmp_path: Path):
    store_path = tmp_path / "state" / "nginx.json"
    config = IntegrationConfig.model_validate(
        {
            "name": "com.example.nginx",
            "version": "2.0.0",
            "synchronized": True,
            "store": {"path": str(store_path), "ttl_seconds": 600},
            "logging": {"level": "warning", "log_file": str(tmp_path / "logs" / "nginx.log")},
        }
    )

    integration = IntegrationBuilder.from_config(config).writer(io.StringIO()).argv([]).environ({}).build()

    assert integration.name == "com.example.nginx"
    assert integration.integration_version == "2.0.0"
    assert not isinstance(integration.lock, DisabledLock)
    assert isinstance(integration.storer, FileStore)
    assert integration.storer.path == store_path
    assert integration.storer.ttl == timedelta(seconds=600)
    assert (tmp_path / "logs" / "nginx.log").exists()


@pytest.mark.parametrize("kind, expected", [("memory", InMemoryStore), ("none", type(None))])
def test_builder_from_config_store_kinds(kind, expected):
    config = IntegrationConfig(name="com.example.nginx", version="2.0.0", store={"kind": kind})

    integration = IntegrationBuilder.from_config(config).writer(io.StringIO()).argv([]).environ({}).build()

    assert type(integration.storer) is expected
