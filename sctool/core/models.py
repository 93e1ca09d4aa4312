"""
Pydantic models for the sctool configuration file (install + broker).
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

# DNS-1123 label: what Kubernetes accepts for namespaces and most object names
_DNS1123_LABEL = re.compile(r"[a-z0-9]([-a-z0-9]*[a-z0-9])?")


def _dns_label(v: str, what: str) -> str:
    if len(v) > 63 or not _DNS1123_LABEL.fullmatch(v or ""):
        raise ValueError(f"{what} must be a DNS-1123 label: {v!r}")
    return v


class InstallConfig(BaseModel):
    namespace: str = "service-catalog"
    api_server_service_name: str = "service-catalog-api"
    image: str = "quay.io/kubernetes-service-catalog/service-catalog:v0.1.9"
    cleanup_temp_dir_on_success: bool = False
    work_dir: Optional[Path] = None

    @field_validator("namespace")
    @classmethod
    def namespace_label(cls, v: str) -> str:
        return _dns_label(v, "namespace")

    @field_validator("api_server_service_name")
    @classmethod
    def service_label(cls, v: str) -> str:
        return _dns_label(v, "api_server_service_name")


class BrokerConfig(BaseModel):
    name: str = "gcp-broker"
    project: Optional[str] = None
    url_template: str = "https://servicebroker.googleapis.com/v1beta1/projects/{project}/brokers/default"
    token_secret: str = "gcp-broker-token"
    token_namespace: str = "service-catalog"
    apis: List[str] = Field(default_factory=lambda: ["servicebroker.googleapis.com"])

    @field_validator("name", "token_secret", "token_namespace")
    @classmethod
    def object_label(cls, v: str) -> str:
        return _dns_label(v, "broker object name")

    @field_validator("url_template")
    @classmethod
    def url_has_project(cls, v: str) -> str:
        if "{project}" not in v:
            raise ValueError("url_template must contain {project}")
        return v


class SctoolConfig(BaseModel):
    install: InstallConfig = Field(default_factory=InstallConfig)
    broker: BrokerConfig = Field(default_factory=BrokerConfig)
