"""
GCP service broker registration.
"""

from __future__ import annotations

import logging
from typing import Optional

from .dependencies import GCLOUD_BINARY, KUBECTL_BINARY, check_dependencies
from .errors import ConfigurationError, SctoolError
from .installer import DependencyCheck, Runner, run_step
from .models import BrokerConfig
from .pipeline import run_pipeline
from .template_engine import TemplateProcessor
from sctool.tools import Gcloud, Kubectl

logger = logging.getLogger(__name__)

BROKER_MANIFEST = "broker.yaml"
# gcloud prints this when no project is set
_UNSET = "(unset)"


class GCPBroker:
    """Adds or removes the GCP ClusterServiceBroker."""

    def __init__(
        self,
        config: BrokerConfig,
        runner: Runner = run_pipeline,
        templates: Optional[TemplateProcessor] = None,
        dependency_check: DependencyCheck = check_dependencies,
        gcloud: Optional[Gcloud] = None,
        kubectl: Optional[Kubectl] = None,
    ):
        self.config = config
        self.runner = runner
        self.templates = templates or TemplateProcessor()
        self.dependency_check = dependency_check
        self.gcloud = gcloud or Gcloud()
        self.kubectl = kubectl or Kubectl()

    def resolve_project(self) -> str:
        if self.config.project:
            return self.config.project
        out = run_step(self.runner, "Reading gcloud project", self.gcloud.current_project()).text.strip()
        if not out or out == _UNSET:
            raise SctoolError("no GCP project configured; set broker.project or run 'gcloud config set project <id>'")
        return out

    def broker_url(self, project: str) -> str:
        try:
            return self.config.url_template.format(project=project)
        except (KeyError, IndexError, ValueError) as e:
            raise ConfigurationError(
                f"broker.url_template {self.config.url_template!r} cannot be filled with the project: {e!r}"
            ) from e

    def add(self) -> str:
        """Register the broker; returns its URL."""
        self.dependency_check([GCLOUD_BINARY, KUBECTL_BINARY])
        project = self.resolve_project()
        url = self.broker_url(project)
        logger.info(f"Adding GCP broker {self.config.name} for project {project}")

        for api in self.config.apis:
            run_step(self.runner, f"Enabling {api}", self.gcloud.enable_service(api, project))

        run_step(
            self.runner,
            "Storing broker access token",
            self.gcloud.access_token(),
            self.kubectl.generic_secret_yaml_from_stdin(self.config.token_secret, self.config.token_namespace, "token"),
            self.kubectl.apply(),
        )

        manifest = self.templates.render(
            BROKER_MANIFEST,
            {
                "broker_name": self.config.name,
                "broker_url": url,
                "token_secret": self.config.token_secret,
                "token_namespace": self.config.token_namespace,
            },
        )
        run_step(self.runner, "Registering broker", self.kubectl.apply(manifest))
        return url

    def remove(self) -> None:
        self.dependency_check([KUBECTL_BINARY])
        logger.info(f"Removing GCP broker {self.config.name}")
        run_step(self.runner, "Removing broker", self.kubectl.delete("clusterservicebroker", self.config.name))
        run_step(
            self.runner,
            "Removing broker access token",
            self.kubectl.delete("secret", self.config.token_secret, namespace=self.config.token_namespace),
        )
