"""
Exception types raised by sctool.

All failures surface to the immediate caller; nothing here retries.
"""

from __future__ import annotations

from typing import List, Optional, Sequence


class SctoolError(Exception):
    """Base class for all sctool errors."""


class ConfigurationError(SctoolError):
    """Configuration file could not be read or failed validation."""


class TemplateError(SctoolError):
    """A manifest template is missing or left placeholders unresolved."""


class MissingBinariesError(SctoolError):
    """One or more required executables are not on the search path."""

    def __init__(self, missing: Sequence[str]):
        self.missing: List[str] = list(missing)
        super().__init__(f"{','.join(self.missing)} commands not found in the PATH")


class PipelineError(SctoolError):
    """A pipeline stage failed to start or to finish cleanly."""

    def __init__(self, message: str, stage: int, argv: Sequence[str]):
        self.stage = stage
        self.argv: List[str] = list(argv)
        # combined stderr of the pipeline, filled in once it has finished
        self.stderr = ""
        super().__init__(message)


class StageStartError(PipelineError):
    """A stage's process could not be spawned."""

    def __init__(self, stage: int, argv: Sequence[str], cause: OSError):
        self.cause = cause
        super().__init__(f"stage {stage} ({argv[0] if argv else '?'}) failed to start: {cause}", stage, argv)


class StageWaitError(PipelineError):
    """A stage exited non-zero or its streams failed while waiting."""

    def __init__(self, stage: int, argv: Sequence[str], returncode: Optional[int], detail: str = ""):
        self.returncode = returncode
        name = argv[0] if argv else "?"
        if returncode is not None:
            msg = f"stage {stage} ({name}) exited with status {returncode}"
        else:
            msg = f"stage {stage} ({name}) failed while waiting"
        if detail:
            msg = f"{msg}: {detail}"
        super().__init__(msg, stage, argv)
