"""
Classification of external tool failures.

Matches the combined stderr of a failed kubectl/gcloud/cfssl invocation
against known patterns and attaches a category and suggestions the CLI can
print under the failure detail.
"""

import re
import logging
from typing import List, Optional
from dataclasses import dataclass, field
from enum import Enum

from .errors import MissingBinariesError, PipelineError, StageStartError, StageWaitError

logger = logging.getLogger(__name__)


class ErrorCategory(Enum):
    """Categories of errors in the system."""
    MISSING_DEPENDENCY = "missing_dependency"
    CLUSTER_UNREACHABLE = "cluster_unreachable"
    PERMISSION_DENIED = "permission_denied"
    AUTHENTICATION = "authentication"
    ALREADY_EXISTS = "already_exists"
    NOT_FOUND = "not_found"
    CERTIFICATE_ERROR = "certificate_error"
    TOOL_FAILURE = "tool_failure"
    UNKNOWN_ERROR = "unknown_error"


@dataclass
class ErrorPattern:
    """Error pattern for detection."""
    category: ErrorCategory
    patterns: List[str]
    description: str
    suggestions: List[str] = field(default_factory=list)


@dataclass
class ErrorReport:
    """What went wrong and what to try next."""
    category: ErrorCategory = ErrorCategory.UNKNOWN_ERROR
    description: str = ""
    exit_code: Optional[int] = None
    stage: Optional[int] = None
    stderr: str = ""
    matched_patterns: List[str] = field(default_factory=list)
    suggestions: List[str] = field(default_factory=list)


ERROR_PATTERNS: List[ErrorPattern] = [
    ErrorPattern(
        category=ErrorCategory.CLUSTER_UNREACHABLE,
        patterns=[
            r"unable to connect to the server",
            r"the connection to the server .* was refused",
            r"no configuration has been provided",
        ],
        description="Kubernetes cluster is not reachable",
        suggestions=[
            "Check that kubectl is configured for the target cluster (kubectl cluster-info)",
        ],
    ),
    ErrorPattern(
        category=ErrorCategory.AUTHENTICATION,
        patterns=[
            r"you do not currently have an active account selected",
            r"gcloud auth login",
            r"reauthentication failed",
        ],
        description="gcloud is not authenticated",
        suggestions=["Run 'gcloud auth login' and retry"],
    ),
    ErrorPattern(
        category=ErrorCategory.PERMISSION_DENIED,
        patterns=[
            r"\bforbidden\b",
            r"permission_denied",
            r"does not have .*permission",
        ],
        description="Insufficient permissions",
        suggestions=[
            "Creating cluster-wide objects needs cluster-admin (kubectl create clusterrolebinding ...)",
            "Check the IAM roles of the active gcloud account",
        ],
    ),
    ErrorPattern(
        category=ErrorCategory.ALREADY_EXISTS,
        patterns=[r"alreadyexists", r"already exists"],
        description="Object already exists",
        suggestions=["Run the matching uninstall/remove command first"],
    ),
    ErrorPattern(
        category=ErrorCategory.NOT_FOUND,
        patterns=[r"\(notfound\)", r"not found"],
        description="Object not found",
        suggestions=["Check that Service Catalog is installed (sctool install)"],
    ),
    ErrorPattern(
        category=ErrorCategory.CERTIFICATE_ERROR,
        patterns=[r"\[error\].*(csr|certificate|key)", r"failed to parse .*json", r"cfssljson"],
        description="Certificate generation failed",
        suggestions=["Check the cfssl and cfssljson versions on PATH"],
    ),
]


class ErrorHandler:
    """Turns sctool exceptions into ErrorReports."""

    def __init__(self, patterns: Optional[List[ErrorPattern]] = None):
        self.error_patterns = list(patterns) if patterns is not None else list(ERROR_PATTERNS)

    def analyze(self, error: Exception, stderr: str = "") -> ErrorReport:
        report = ErrorReport(description=str(error), stderr=stderr)

        if isinstance(error, MissingBinariesError):
            report.category = ErrorCategory.MISSING_DEPENDENCY
            report.suggestions.append(f"Install {', '.join(error.missing)} and make sure they are on PATH")
            return report
        if isinstance(error, StageStartError):
            report.category = ErrorCategory.MISSING_DEPENDENCY
            report.stage = error.stage
            report.suggestions.append("Run 'sctool check' to verify required binaries")
            return report
        if isinstance(error, PipelineError):
            report.stage = error.stage
        if isinstance(error, StageWaitError):
            report.exit_code = error.returncode

        self._classify_error(report)
        return report

    def _classify_error(self, report: ErrorReport) -> None:
        """Classify error based on stderr patterns, falling back to exit code."""
        error_text = report.stderr.lower()
        for pattern in self.error_patterns:
            for pattern_text in pattern.patterns:
                if re.search(pattern_text, error_text):
                    report.category = pattern.category
                    report.description = f"{pattern.description}: {report.description}"
                    report.suggestions.extend(pattern.suggestions)
                    report.matched_patterns.append(pattern_text)
                    logger.debug(f"classified as {pattern.category.value} via {pattern_text!r}")
                    return

        if report.exit_code is not None:
            report.category = ErrorCategory.TOOL_FAILURE
            if report.exit_code in (126, 127):
                report.suggestions.append("A helper command could not be executed; run 'sctool check'")
