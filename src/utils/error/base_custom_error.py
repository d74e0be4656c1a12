class BaseCustomError(Exception):
    """Base class for custom exceptions with metadata support."""

    def __init__(self, message: str, **metadata):
        """Initializes the exception with a message and optional metadata.

        :param message: Error message.
        :param metadata: Entity identifiers (employee, window, issue key, query) for the report.
        """
        super().__init__(message)
        self.message = message
        self.metadata = metadata

    def __str__(self):
        if not self.metadata:
            return self.message
        metadata_info = ", ".join(f"{k}={v}" for k, v in self.metadata.items())
        return f"{self.message} | Metadata: {metadata_info}"
