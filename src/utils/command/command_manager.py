import importlib
import inspect
import os
import pkgutil
from argparse import ArgumentParser, _SubParsersAction

from utils.command.base_command import BaseCommand
from utils.logging.logging_manager import LogManager

from .error import (
    CommandLoadError,
    CommandManagerError,
    HierarchyConflictError,
    ModuleImportError,
)


class CommandManager:
    """
    Discovers BaseCommand subclasses under a ``domains`` package and exposes them as
    ``<domain> <command>`` subcommands, e.g. ``jira team-velocity``.
    """

    _logger = LogManager.get_instance().get_logger("CommandManager")

    def __init__(self, base_path: str, package: str = "domains"):
        self.base_path = os.path.abspath(base_path)
        self.package = package
        self.hierarchy: dict[str, dict] = {}

    def load_commands(self) -> None:
        """Import every module of every domain package and register the commands it defines."""
        self._logger.debug(f"Loading commands from {self.base_path}")

        for root, _, _ in os.walk(self.base_path):
            if not os.path.isfile(os.path.join(root, "__init__.py")):
                continue

            for _, module_name, is_package in pkgutil.iter_modules([root]):
                if is_package:
                    continue
                try:
                    module = self._import_module(root, module_name)
                    self._process_module(module)
                except CommandManagerError as e:
                    self._logger.error(str(e), exc_info=True)

        self._logger.debug(f"Loaded domains: {sorted(self.hierarchy)}")

    def _module_path_from_root(self, root: str, module_name: str) -> str:
        """Relative dotted path of ``module_name`` for ``importlib.import_module``."""
        relative_path = os.path.relpath(root, self.base_path)
        if relative_path == ".":
            return f".{module_name}"
        return f".{relative_path.replace(os.sep, '.')}.{module_name}"

    def _import_module(self, root: str, module_name: str):
        relative_path = self._module_path_from_root(root, module_name)
        self._logger.debug(f"Importing module {relative_path}")
        try:
            return importlib.import_module(relative_path, package=self.package)
        except Exception as e:
            raise ModuleImportError(module_path=relative_path, error=e) from e

    def _process_module(self, module):
        """Register the concrete BaseCommand subclasses defined in ``module``."""
        try:
            for name, obj in inspect.getmembers(module, inspect.isclass):
                if not issubclass(obj, BaseCommand) or obj is BaseCommand:
                    continue
                if obj.__module__ != module.__name__ or inspect.isabstract(obj):
                    continue
                self._logger.debug(f"Found command class: {name}")
                self._add_to_hierarchy(obj)
        except HierarchyConflictError:
            raise
        except Exception as e:
            raise CommandLoadError(module_name=module.__name__, error=e) from e

    def _add_to_hierarchy(self, command: type[BaseCommand]):
        """Place a command under the domain packages its module lives in."""
        name_parts = command.__module__.split(".")[1:-1]
        command_name = command.get_name()

        current_level = self.hierarchy
        for part in name_parts:
            current_level = current_level.setdefault(part, {})

        if command_name in current_level:
            raise HierarchyConflictError(command_name=command_name)

        current_level[command_name] = {"name": command_name, "class": command}
        self._logger.debug(f"Command {'/'.join(name_parts + [command_name])} registered")

    def build_parser(self) -> ArgumentParser:
        """Builds the ArgumentParser hierarchy from the loaded command structure."""
        parser = ArgumentParser(
            prog="jira-velocity",
            description="jira-velocity CLI - per-employee Jira velocity reports",
            add_help=False,
        )
        subparsers = parser.add_subparsers(dest="domain", help="Available domains")
        for domain_name, substructure in self.hierarchy.items():
            self._add_subparser(subparsers, domain_name, substructure)
        return parser

    def _add_subparser(self, subparsers: _SubParsersAction, name: str, substructure: dict):
        """Recursively adds subparsers for domains and commands."""
        if "class" in substructure:
            substructure["class"].register_command(subparsers)
            return

        parser = subparsers.add_parser(name, help=f"{name} commands")
        nested = parser.add_subparsers(dest="subdomain_or_command", help=f"{name} subcommands")
        for key, value in substructure.items():
            self._add_subparser(nested, key, value)
