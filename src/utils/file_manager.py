import os
from typing import List, Optional


class FileManager:
    """
    General file management operations used by the logging, cache and report layers.
    """

    @staticmethod
    def create_folder(folder_path: str) -> None:
        """
        Creates a folder (and any missing parents) if it does not exist.

        Args:
            folder_path (str): Path of the folder to create.
        """
        if folder_path:
            os.makedirs(folder_path, exist_ok=True)

    @staticmethod
    def is_folder(path: str) -> bool:
        return os.path.isdir(path)

    @staticmethod
    def ensure_parent_folder(file_path: str) -> None:
        """
        Creates the parent folder of a file path when it is missing.

        Args:
            file_path (str): Path to a file that is about to be written.
        """
        parent = os.path.dirname(os.path.abspath(file_path))
        FileManager.create_folder(parent)

    @staticmethod
    def list_files(directory: str, extension: Optional[str] = None) -> List[str]:
        """
        Lists all files in a directory with an optional filter by extension, sorted by name.

        Args:
            directory (str): Path to the directory.
            extension (Optional[str]): File extension to filter by (e.g., ".json").

        Returns:
            List[str]: Sorted list of file paths that match the filter.

        Raises:
            FileNotFoundError: If the directory does not exist.
        """
        if not os.path.exists(directory):
            raise FileNotFoundError(f"Directory not found: {directory}")
        return sorted(
            os.path.join(directory, f)
            for f in os.listdir(directory)
            if os.path.isfile(os.path.join(directory, f))
            and (extension is None or f.endswith(extension))
        )

    @staticmethod
    def touch(file_path: str) -> None:
        """
        Creates an empty file if it does not exist, leaving existing content untouched.

        Args:
            file_path (str): Path to the file.
        """
        FileManager.ensure_parent_folder(file_path)
        with open(file_path, "a", encoding="utf-8"):
            pass
