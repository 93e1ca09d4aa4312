"""
External tool adapters (kubectl, gcloud, cfssl).

Adapters only describe commands as ProcessSpecs; sctool.core.pipeline runs them.
"""

from .base import ToolAdapter
from .cfssl import Cfssl
from .gcloud import Gcloud
from .kubectl import Kubectl

__all__ = [
    "ToolAdapter",
    "Cfssl",
    "Gcloud",
    "Kubectl",
]
