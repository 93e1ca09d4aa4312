"""
Service Catalog install/uninstall.

Install:
- generate a CA and an API server serving certificate (cfssl | cfssljson)
- apply namespace, RBAC, TLS secret, API server, controller manager
- register the APIService with the CA bundle

Uninstall removes the APIService registration, the cluster-scoped RBAC
objects and the namespace. Every external step goes through a pipeline
runner so tests can substitute a recorder.
"""

from __future__ import annotations

import base64
import logging
from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence

from .dependencies import CFSSL_BINARY, CFSSLJSON_BINARY, KUBECTL_BINARY, check_dependencies
from .errors import SctoolError
from .models import InstallConfig
from .pipeline import PipelineResult, ProcessSpec, run_pipeline
from .template_engine import TemplateProcessor
from sctool.tools import Cfssl, Kubectl
from sctool.utils.file_management import FileManager

logger = logging.getLogger(__name__)

Runner = Callable[[Sequence[ProcessSpec]], PipelineResult]
DependencyCheck = Callable[[Sequence[str]], None]

APISERVICE_NAME = "v1beta1.servicecatalog.k8s.io"
TLS_SECRET_NAME = "service-catalog-apiserver-cert"
CLUSTER_RBAC_NAMES = (
    "servicecatalog.k8s.io:apiserver",
    "servicecatalog.k8s.io:controller-manager",
)
CLUSTER_RBAC_BINDING_NAMES = CLUSTER_RBAC_NAMES + ("servicecatalog.k8s.io:apiserver-auth-delegator",)

# Applied in this order; apiservice goes last so the aggregator only sees a
# running API server.
MANIFESTS = ("namespace.yaml", "rbac.yaml", "apiserver.yaml", "controller-manager.yaml")
APISERVICE_MANIFEST = "apiservice.yaml"

CA_CONFIG = {
    "signing": {
        "default": {"expiry": "43800h"},
        "profiles": {
            "server": {
                "expiry": "43800h",
                "usages": ["signing", "key encipherment", "server auth"],
            }
        },
    }
}


def run_step(runner: Runner, description: str, *stages: ProcessSpec) -> PipelineResult:
    """Run one pipeline and raise its error; logs the step either way."""
    logger.info(f"{description}: {' | '.join(str(s) for s in stages)}")
    result = runner(list(stages))
    if not result.ok:
        logger.error(f"{description} failed: {result.error}")
        if result.stderr:
            logger.error(result.stderr_text.strip())
    return result.check()


class ServiceCatalogInstaller:
    """Installs and uninstalls Service Catalog through kubectl and cfssl."""

    def __init__(
        self,
        config: InstallConfig,
        runner: Runner = run_pipeline,
        templates: Optional[TemplateProcessor] = None,
        dependency_check: DependencyCheck = check_dependencies,
        kubectl: Optional[Kubectl] = None,
        cfssl: Optional[Cfssl] = None,
    ):
        self.config = config
        self.runner = runner
        self.templates = templates or TemplateProcessor()
        self.dependency_check = dependency_check
        self.kubectl = kubectl or Kubectl()
        self.cfssl = cfssl or Cfssl()

    @property
    def substitutions(self) -> Dict[str, str]:
        return {
            "namespace": self.config.namespace,
            "api_server_service_name": self.config.api_server_service_name,
            "image": self.config.image,
            "tls_secret": TLS_SECRET_NAME,
        }

    def server_hostnames(self) -> List[str]:
        svc, ns = self.config.api_server_service_name, self.config.namespace
        return [svc, f"{svc}.{ns}", f"{svc}.{ns}.svc", f"{svc}.{ns}.svc.cluster.local"]

    def install(self) -> Path:
        """Install Service Catalog; returns the work dir holding certificates (or the removed path)."""
        self.dependency_check([KUBECTL_BINARY, CFSSL_BINARY, CFSSLJSON_BINARY])

        try:
            work_dir = FileManager.make_work_dir(self.config.work_dir)
        except OSError as e:
            raise SctoolError(f"cannot create work dir: {e}") from e
        logger.info(f"Installing Service Catalog into namespace {self.config.namespace} (work dir {work_dir})")

        self.generate_certificates(work_dir)

        for name in MANIFESTS:
            if name == "apiserver.yaml":
                # the deployment mounts this secret, so it has to exist first
                self.apply_tls_secret(work_dir)
            self.apply_manifest(name, self.substitutions)

        ca_bundle = self.read_ca_bundle(work_dir)
        self.apply_manifest(APISERVICE_MANIFEST, {**self.substitutions, "ca_bundle": ca_bundle})

        if self.config.cleanup_temp_dir_on_success:
            try:
                FileManager.remove_directory(work_dir)
            except OSError as e:
                raise SctoolError(f"Service Catalog installed, but work dir {work_dir} could not be removed: {e}") from e
        logger.info("Service Catalog installed")
        return work_dir

    def generate_certificates(self, work_dir: Path) -> None:
        try:
            self.write_csr_files(work_dir)
        except OSError as e:
            raise SctoolError(f"cannot write certificate requests to {work_dir}: {e}") from e
        run_step(self.runner, "Generating CA", *self.cfssl.init_ca(work_dir, work_dir / "ca-csr.json"))
        run_step(
            self.runner,
            "Generating API server certificate",
            *self.cfssl.gencert(work_dir, work_dir / "apiserver-csr.json", "apiserver"),
        )

    def write_csr_files(self, work_dir: Path) -> None:
        FileManager.save_json(CA_CONFIG, work_dir / "ca-config.json")
        FileManager.save_json(
            {"CN": "service-catalog-ca", "key": {"algo": "rsa", "size": 2048}},
            work_dir / "ca-csr.json",
        )
        FileManager.save_json(
            {
                "CN": self.config.api_server_service_name,
                "hosts": self.server_hostnames(),
                "key": {"algo": "rsa", "size": 2048},
            },
            work_dir / "apiserver-csr.json",
        )

    def read_ca_bundle(self, work_dir: Path) -> str:
        """Base64 of the generated CA certificate, as the APIService caBundle expects."""
        try:
            return base64.b64encode((work_dir / "ca.pem").read_bytes()).decode()
        except OSError as e:
            raise SctoolError(f"CA certificate was not generated: {e}") from e

    def apply_tls_secret(self, work_dir: Path) -> None:
        run_step(
            self.runner,
            "Creating API server TLS secret",
            self.kubectl.tls_secret_yaml(
                TLS_SECRET_NAME, self.config.namespace, work_dir / "apiserver.pem", work_dir / "apiserver-key.pem"
            ),
            self.kubectl.apply(),
        )

    def apply_manifest(self, template: str, substitutions: Dict[str, str]) -> None:
        manifest = self.templates.render(template, substitutions)
        run_step(self.runner, f"Applying {template}", self.kubectl.apply(manifest))

    def uninstall(self) -> None:
        self.dependency_check([KUBECTL_BINARY])
        ns = self.config.namespace
        logger.info(f"Uninstalling Service Catalog from namespace {ns}")
        run_step(self.runner, "Removing APIService", self.kubectl.delete("apiservice", APISERVICE_NAME))
        run_step(self.runner, "Removing cluster role bindings", self.kubectl.delete("clusterrolebinding", *CLUSTER_RBAC_BINDING_NAMES))
        run_step(self.runner, "Removing cluster roles", self.kubectl.delete("clusterrole", *CLUSTER_RBAC_NAMES))
        run_step(self.runner, "Removing namespace", self.kubectl.delete("namespace", ns))
        logger.info("Service Catalog uninstalled")
