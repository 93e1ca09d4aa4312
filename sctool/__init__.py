"""
sctool

Installs Service Catalog into a Kubernetes cluster and registers the GCP
service broker, driving kubectl, gcloud and cfssl through process pipelines.
"""

__version__ = "0.1.0"

# Keep top-level imports minimal; subpackages pull in pydantic/rich
__all__ = [
    "__version__",
]
