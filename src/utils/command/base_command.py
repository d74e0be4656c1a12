from abc import ABC, abstractmethod
from argparse import ArgumentParser, Namespace, RawDescriptionHelpFormatter


class BaseCommand(ABC):
    """Abstract base class for CLI commands discovered under the ``domains`` package."""

    @staticmethod
    @abstractmethod
    def get_name() -> str:
        """Returns the name the command is invoked with."""
        pass

    @staticmethod
    def get_description() -> str:
        """Returns a one-line description shown in the domain's command list."""
        return "No description provided."

    @staticmethod
    def get_help() -> str:
        """Returns the long help text, usually with usage examples."""
        return "No help available."

    @classmethod
    def register_command(cls, subparsers):
        """Registers the command in the given subparsers.

        Args:
            subparsers (_SubParsersAction): The domain's subparsers.
        """
        parser = subparsers.add_parser(
            cls.get_name(),
            help=cls.get_description(),
            description=cls.get_help(),
            formatter_class=RawDescriptionHelpFormatter,
        )
        cls.get_arguments(parser)
        parser.set_defaults(func=cls.main)

    @staticmethod
    @abstractmethod
    def get_arguments(parser: ArgumentParser):
        """Adds arguments to the parser.

        Args:
            parser (ArgumentParser): The parser to which arguments are added.
        """
        pass

    @staticmethod
    @abstractmethod
    def main(args: Namespace):
        """Executes the main logic of the command.

        Args:
            args (Namespace): Parsed arguments from the CLI.
        """
        pass
