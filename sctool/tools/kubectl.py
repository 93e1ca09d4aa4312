"""
kubectl adapter.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from .base import ToolAdapter
from sctool.core.dependencies import KUBECTL_BINARY
from sctool.core.pipeline import ProcessSpec


class Kubectl(ToolAdapter):
    @classmethod
    def default_binary(cls) -> str:
        return KUBECTL_BINARY

    def apply(self, manifest: Optional[str] = None) -> ProcessSpec:
        """``kubectl apply -f -``; without a manifest it reads the previous stage."""
        return self.spec("apply", "-f", "-", stdin=manifest)

    def delete(self, kind: str, *names: str, namespace: Optional[str] = None) -> ProcessSpec:
        args = ["delete", kind, *names]
        if namespace:
            args += ["--namespace", namespace]
        args.append("--ignore-not-found")
        return self.spec(*args)

    def tls_secret_yaml(self, name: str, namespace: str, cert: Path, key: Path) -> ProcessSpec:
        """Render a TLS secret manifest to stdout without touching the cluster."""
        return self.spec(
            "create", "secret", "tls", name,
            "--namespace", namespace,
            f"--cert={cert}",
            f"--key={key}",
            "--dry-run=client", "-o", "yaml",
        )

    def generic_secret_yaml_from_stdin(self, name: str, namespace: str, key: str) -> ProcessSpec:
        """Render a generic secret whose single ``key`` is read from stdin."""
        return self.spec(
            "create", "secret", "generic", name,
            "--namespace", namespace,
            f"--from-file={key}=/dev/stdin",
            "--dry-run=client", "-o", "yaml",
        )
