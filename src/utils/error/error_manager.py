import sys

from log_config import log_manager

logger = log_manager.get_logger("ErrorManager")


def handle_generic_exception(exception: Exception, context_message: str, metadata: dict | None = None):
    """Logs an unexpected exception and terminates the run with a non-zero exit code.

    :param exception: The exception raised.
    :param context_message: Custom message providing context for the error.
    :param metadata: Additional metadata (optional) for debugging purposes.
    """
    metadata_info = f" | Metadata: {metadata}" if metadata else ""
    logger.error(
        f"An error occurred: {context_message}{metadata_info} - {exception}",
        exc_info=True,
    )
    print(f"Error: {context_message}{metadata_info} - {exception}", file=sys.stderr)
    sys.exit(1)
