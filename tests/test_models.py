from pathlib import Path

import pytest
from pydantic import ValidationError

from sctool.core.models import BrokerConfig, InstallConfig, SctoolConfig


def test_install_defaults():
    c = InstallConfig()
    assert c.namespace == "service-catalog"
    assert c.api_server_service_name == "service-catalog-api"
    assert c.cleanup_temp_dir_on_success is False
    assert c.work_dir is None


def test_namespace_must_be_dns_label():
    with pytest.raises(ValidationError):
        InstallConfig(namespace="Service_Catalog")
    with pytest.raises(ValidationError):
        InstallConfig(namespace="-lead")
    with pytest.raises(ValidationError):
        InstallConfig(namespace="a" * 64)
    assert InstallConfig(namespace="sc-1").namespace == "sc-1"


def test_broker_url_template_needs_project():
    with pytest.raises(ValidationError):
        BrokerConfig(url_template="https://example.com/brokers/default")
    b = BrokerConfig(project="p1")
    assert b.url_template.format(project="p1").endswith("/projects/p1/brokers/default")


def test_config_roundtrip():
    raw = {
        "install": {"namespace": "catalog", "work_dir": "/tmp/w"},
        "broker": {"name": "my-broker", "apis": ["a.googleapis.com", "b.googleapis.com"]},
    }
    cfg = SctoolConfig.model_validate(raw)
    assert cfg.install.work_dir == Path("/tmp/w")
    cfg2 = SctoolConfig.model_validate(cfg.model_dump())
    assert cfg2.broker.apis == ["a.googleapis.com", "b.googleapis.com"]
    assert cfg2.broker.token_secret == "gcp-broker-token"
