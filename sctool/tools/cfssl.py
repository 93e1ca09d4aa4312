"""
cfssl/cfssljson adapter: the two cooperating certificate tools.

``cfssl`` prints signed material as JSON on stdout and ``cfssljson -bare``
turns that JSON into ``<prefix>.pem``/``<prefix>-key.pem`` files in its
working directory, so they always run as a two-stage pipeline.
"""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional

from .base import ToolAdapter
from sctool.core.dependencies import CFSSL_BINARY, CFSSLJSON_BINARY
from sctool.core.pipeline import ProcessSpec


class Cfssl(ToolAdapter):
    def __init__(self, binary: Optional[str] = None, json_binary: Optional[str] = None):
        super().__init__(binary)
        self.json_binary = json_binary or CFSSLJSON_BINARY

    @classmethod
    def default_binary(cls) -> str:
        return CFSSL_BINARY

    def init_ca(self, work_dir: Path, csr: Path, prefix: str = "ca") -> List[ProcessSpec]:
        return [
            self.spec("gencert", "-initca", csr, cwd=work_dir),
            self.bare(work_dir, prefix),
        ]

    def gencert(
        self,
        work_dir: Path,
        csr: Path,
        prefix: str,
        ca_prefix: str = "ca",
        ca_config: str = "ca-config.json",
        profile: str = "server",
    ) -> List[ProcessSpec]:
        return [
            self.spec(
                "gencert",
                f"-ca={ca_prefix}.pem",
                f"-ca-key={ca_prefix}-key.pem",
                f"-config={ca_config}",
                f"-profile={profile}",
                csr,
                cwd=work_dir,
            ),
            self.bare(work_dir, prefix),
        ]

    def bare(self, work_dir: Path, prefix: str) -> ProcessSpec:
        return ProcessSpec(self.json_binary, ["-bare", prefix], cwd=work_dir)
