"""
provisioner.cli - Command-line Entry Point
============================================

Thin argparse front end over the Installer facade.

Commands:
    provisioner version                     print the package version
    provisioner targets                     list targets and what they build
    provisioner create <target>             build a target in --dir

Plugin Selectors (``create`` only):
    --infrastructure null | python:<module>   module exposes get_provider()
    --client python:<module>                  module exposes get_client(kubeconfig)

Exit Codes:
    0 on success; 1 on any ProvisionerError or a missing config file, which
    is logged as ``create_failed`` with the error's code and details.
"""

from __future__ import annotations

import argparse
import asyncio
import importlib
from typing import Any, Optional

import structlog

from provisioner.core.config import load_config
from provisioner.core.exceptions import ConfigurationError, ProvisionerError
from provisioner.core.logging import configure_logging
from provisioner.facade import ClientFactory, Installer
from provisioner.orchestration.infrastructure import (
    InfrastructureProvider,
    NullInfrastructureProvider,
)
from provisioner.orchestration.targets import TARGETS


logger = structlog.get_logger()


def _import_selector(selector: str, option: str) -> Any:
    module_name = selector.split("python:", 1)[1].strip()
    if not module_name:
        raise ConfigurationError(
            message=f"expected {option} python:<module>",
            error_code="INVALID_SELECTOR",
        )
    return importlib.import_module(module_name)


def load_infrastructure(selector: str) -> InfrastructureProvider:
    if selector == "null":
        return NullInfrastructureProvider()
    if selector.startswith("python:"):
        module = _import_selector(selector, "--infrastructure")
        if hasattr(module, "get_provider"):
            return module.get_provider()
        raise ConfigurationError(
            message=f"{module.__name__} must expose get_provider()",
            error_code="INVALID_SELECTOR",
        )
    raise ConfigurationError(
        message=f"unknown infrastructure selector: {selector}",
        error_code="INVALID_SELECTOR",
    )


def load_client_factory(selector: Optional[str]) -> Optional[ClientFactory]:
    if selector is None:
        return None
    if selector.startswith("python:"):
        module = _import_selector(selector, "--client")
        if hasattr(module, "get_client"):
            return module.get_client
        raise ConfigurationError(
            message=f"{module.__name__} must expose get_client(kubeconfig)",
            error_code="INVALID_SELECTOR",
        )
    raise ConfigurationError(
        message=f"unknown client selector: {selector}",
        error_code="INVALID_SELECTOR",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="provisioner")
    parser.add_argument("--dir", dest="directory", default=None, help="Install directory (default: .)")
    parser.add_argument("--log-level", default=None, help="DEBUG | INFO | WARNING | ERROR (default: INFO)")
    parser.add_argument("--config", default=None, help="YAML configuration file (default: ./provisioner.yaml)")
    sub = parser.add_subparsers(dest="cmd", required=True)

    sub.add_parser("version", help="Show the installed version.")
    sub.add_parser("targets", help="List the available targets.")

    create = sub.add_parser("create", help="Create part of a cluster.")
    create.add_argument("target", choices=[t.name for t in TARGETS])
    create.add_argument(
        "--infrastructure",
        default="null",
        help="Infrastructure backend: null | python:<module> (default: null)",
    )
    create.add_argument(
        "--client",
        default=None,
        help="Control-plane client: python:<module> exposing get_client(kubeconfig)",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.cmd == "version":
        from provisioner import __version__

        print(f"provisioner {__version__}")
        return 0

    if args.cmd == "targets":
        for target in TARGETS:
            print(f"{target.name:<16}{target.description}")
        return 0

    overrides: dict[str, Any] = {}
    if args.directory is not None:
        overrides["directory"] = args.directory
    if args.log_level is not None:
        overrides["log_level"] = args.log_level

    try:
        config = load_config(args.config, **overrides)
        configure_logging(config.log_level)
        installer = Installer(
            config,
            infrastructure=load_infrastructure(args.infrastructure),
            client_factory=load_client_factory(args.client),
        )
        asyncio.run(installer.create(args.target))
    except ProvisionerError as exc:
        logger.error("create_failed", target=args.target, **exc.to_dict())
        return 1
    except FileNotFoundError as exc:
        logger.error("create_failed", target=args.target, error=str(exc))
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
