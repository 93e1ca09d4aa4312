"""
Lookup of the external executables sctool drives.
"""

from __future__ import annotations

import logging
import shutil
from typing import Dict, Optional, Sequence

from .errors import MissingBinariesError

logger = logging.getLogger(__name__)

# Binary names that we depend on.
GCLOUD_BINARY = "gcloud"
KUBECTL_BINARY = "kubectl"
CFSSL_BINARY = "cfssl"
CFSSLJSON_BINARY = "cfssljson"

REQUIRED_BINARIES = (GCLOUD_BINARY, KUBECTL_BINARY, CFSSL_BINARY, CFSSLJSON_BINARY)


def resolve_dependencies(names: Sequence[str] = REQUIRED_BINARIES, path: Optional[str] = None) -> Dict[str, Optional[str]]:
    """Return name -> resolved absolute path (None when not found), in input order."""
    resolved: Dict[str, Optional[str]] = {}
    for name in names:
        resolved[name] = shutil.which(name, path=path)
        logger.debug("lookup %s -> %s", name, resolved[name])
    return resolved


def check_dependencies(names: Sequence[str] = REQUIRED_BINARIES, path: Optional[str] = None) -> None:
    """Raise MissingBinariesError listing every name that does not resolve.

    All names are checked before reporting so the caller sees every missing
    command at once.
    """
    if not names:
        raise ValueError("no binaries to check")
    resolved = resolve_dependencies(names, path=path)
    # repeated names are reported as given
    missing = [name for name in names if resolved[name] is None]
    if missing:
        logger.error("missing binaries: %s", ", ".join(missing))
        raise MissingBinariesError(missing)
