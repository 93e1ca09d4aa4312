"""
Base interface for external tool adapters.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

from sctool.core.pipeline import ProcessSpec, StdinSource


class ToolAdapter(ABC):
    """Builds ProcessSpecs for one external CLI."""

    def __init__(self, binary: Optional[str] = None):
        self.binary = binary or self.default_binary()

    @classmethod
    @abstractmethod
    def default_binary(cls) -> str:
        """Executable name looked up on PATH."""
        raise NotImplementedError

    def spec(self, *args: str, stdin: StdinSource = None, cwd: Optional[Path] = None) -> ProcessSpec:
        return ProcessSpec(self.binary, [str(a) for a in args], stdin=stdin, cwd=cwd)
