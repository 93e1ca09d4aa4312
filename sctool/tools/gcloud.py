"""
gcloud adapter.
"""

from __future__ import annotations

from .base import ToolAdapter
from sctool.core.dependencies import GCLOUD_BINARY
from sctool.core.pipeline import ProcessSpec


class Gcloud(ToolAdapter):
    @classmethod
    def default_binary(cls) -> str:
        return GCLOUD_BINARY

    def current_project(self) -> ProcessSpec:
        return self.spec("config", "get-value", "project")

    def enable_service(self, api: str, project: str) -> ProcessSpec:
        return self.spec("services", "enable", api, "--project", project)

    def access_token(self) -> ProcessSpec:
        return self.spec("auth", "print-access-token")
