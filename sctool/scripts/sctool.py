#!/usr/bin/env python3
"""
sctool: CLI to manage Service Catalog in a Kubernetes cluster

Commands:
  sctool check               # verify gcloud, kubectl, cfssl, cfssljson are on PATH
  sctool install             # install Service Catalog (kubectl must point at the cluster)
  sctool uninstall           # uninstall Service Catalog
  sctool add-gcp-broker      # register the GCP service broker
  sctool remove-gcp-broker   # remove the GCP service broker
"""
from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, Iterator, List, Optional

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from sctool.core.broker import GCPBroker
from sctool.core.configuration import load_config, with_overrides
from sctool.core.dependencies import REQUIRED_BINARIES, check_dependencies, resolve_dependencies
from sctool.core.error_handler import ErrorHandler
from sctool.core.errors import SctoolError
from sctool.core.installer import ServiceCatalogInstaller
from sctool.utils.logging_config import setup_logging

logger = logging.getLogger("sctool")

Handler = Callable[[argparse.Namespace, Console], int]


@dataclass
class Command:
    name: str
    help: str
    handler: Handler
    description: Optional[str] = None
    configure: Optional[Callable[[argparse.ArgumentParser], None]] = None


class CommandRegistry:
    """Subcommands known to the dispatcher, in registration order."""

    def __init__(self, commands: Optional[List[Command]] = None):
        self._commands: Dict[str, Command] = {}
        for c in commands or []:
            self.register(c)

    def register(self, command: Command) -> None:
        if command.name in self._commands:
            raise ValueError(f"duplicate command: {command.name}")
        self._commands[command.name] = command

    def get(self, name: str) -> Command:
        return self._commands[name]

    def names(self) -> List[str]:
        return list(self._commands)

    def __iter__(self) -> Iterator[Command]:
        return iter(self._commands.values())

    def __len__(self) -> int:
        return len(self._commands)


def report_failure(console: Console, summary: str, err: Exception) -> int:
    """Print summary, error detail and hints; return the failing exit status."""
    console.print(f"[bold red]{escape(summary)}[/]")
    console.print(escape(str(err)))
    stderr = getattr(err, "stderr", "") or ""
    if stderr.strip():
        console.print(escape(stderr.rstrip()), style="dim")
    report = ErrorHandler().analyze(err, stderr=stderr)
    for s in report.suggestions:
        console.print(f"hint: {escape(s)}", style="yellow")
    logger.error("%s: %s", summary, err)
    return 1


def cmd_check(args: argparse.Namespace, console: Console) -> int:
    table = Table(title="Required binaries")
    table.add_column("Binary")
    table.add_column("Path")
    for name, path in resolve_dependencies(REQUIRED_BINARIES).items():
        table.add_row(name, escape(path) if path else "[red]not found[/]")
    console.print(table)
    try:
        check_dependencies(REQUIRED_BINARIES)
    except SctoolError as e:
        return report_failure(console, "Dependency check failed", e)
    console.print("Dependency check passed. You are good to go.")
    return 0


def cmd_install(args: argparse.Namespace, console: Console) -> int:
    try:
        cfg = load_config(args.config)
        cfg.install = with_overrides(cfg.install, namespace=args.namespace)
        work_dir = ServiceCatalogInstaller(cfg.install).install()
    except SctoolError as e:
        return report_failure(console, "Service Catalog could not be installed", e)
    console.print("Service Catalog installed successfully.")
    if work_dir.exists():
        console.print(f"Certificates kept in {escape(str(work_dir))}")
    return 0


def cmd_uninstall(args: argparse.Namespace, console: Console) -> int:
    try:
        cfg = load_config(args.config)
        cfg.install = with_overrides(cfg.install, namespace=args.namespace)
        ServiceCatalogInstaller(cfg.install).uninstall()
    except SctoolError as e:
        return report_failure(console, "Service Catalog could not be uninstalled", e)
    console.print("Service Catalog uninstalled successfully.")
    return 0


def cmd_add_gcp_broker(args: argparse.Namespace, console: Console) -> int:
    try:
        cfg = load_config(args.config)
        cfg.broker = with_overrides(cfg.broker, project=args.project)
        url = GCPBroker(cfg.broker).add()
    except SctoolError as e:
        return report_failure(console, "failed to configure GCP broker", e)
    logger.info("broker url %s", url)
    console.print("GCP broker added successfully.")
    return 0


def cmd_remove_gcp_broker(args: argparse.Namespace, console: Console) -> int:
    try:
        cfg = load_config(args.config)
        GCPBroker(cfg.broker).remove()
    except SctoolError as e:
        return report_failure(console, "failed to remove GCP broker", e)
    console.print("GCP broker removed successfully.")
    return 0


def _namespace_arg(p: argparse.ArgumentParser) -> None:
    p.add_argument("--namespace", help="Namespace for Service Catalog (default from config: service-catalog)")


def _project_arg(p: argparse.ArgumentParser) -> None:
    p.add_argument("--project", help="GCP project id (default: broker.project or gcloud's current project)")


def build_registry() -> CommandRegistry:
    return CommandRegistry([
        Command(
            "check", "performs a dependency check", cmd_check,
            description="This utility requires cfssl, gcloud, kubectl binaries to be present in PATH. "
                        "This command performs the dependency check.",
        ),
        Command(
            "install", "installs Service Catalog in Kubernetes cluster", cmd_install,
            description="installs Service Catalog in Kubernetes cluster. "
                        "assumes kubectl is configured to connect to the Kubernetes cluster.",
            configure=_namespace_arg,
        ),
        Command(
            "uninstall", "uninstalls Service Catalog in Kubernetes cluster", cmd_uninstall,
            description="uninstalls Service Catalog in Kubernetes cluster. "
                        "assumes kubectl is configured to connect to the Kubernetes cluster.",
            configure=_namespace_arg,
        ),
        Command(
            "add-gcp-broker", "Adds GCP broker", cmd_add_gcp_broker,
            description="Adds a GCP broker to Service Catalog",
            configure=_project_arg,
        ),
        Command(
            "remove-gcp-broker", "Remove GCP broker", cmd_remove_gcp_broker,
            description="Removes a GCP broker from service catalog",
        ),
    ])


def build_parser(registry: CommandRegistry) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sctool",
        description="CLI for managing lifecycle of Service Catalog and Service brokers in a Kubernetes Cluster",
    )
    parser.add_argument("--config", type=Path, default=None, help="Config YAML (default: $SCTOOL_CONFIG or ./sctool.yaml)")
    parser.add_argument("--log-level", choices=["DEBUG", "INFO", "WARNING", "ERROR"], default="INFO")
    parser.add_argument("--log-file", type=Path, default=None, help="Log file (default: $SCTOOL_LOG_FILE or sctool_data/sctool.log)")
    sub = parser.add_subparsers(dest="cmd")
    for command in registry:
        p = sub.add_parser(command.name, help=command.help, description=command.description or command.help)
        if command.configure:
            command.configure(p)
        p.set_defaults(func=command.handler)
    return parser


def main(argv: Optional[List[str]] = None, registry: Optional[CommandRegistry] = None) -> int:
    registry = registry if registry is not None else build_registry()
    parser = build_parser(registry)
    args = parser.parse_args(argv)
    if not hasattr(args, "func"):
        parser.print_help()
        return 1
    setup_logging(level=args.log_level, log_file=args.log_file)
    return int(args.func(args, Console(soft_wrap=True)))


if __name__ == "__main__":
    sys.exit(main())
