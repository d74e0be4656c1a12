import os
from datetime import datetime
from typing import Optional

import pandas as pd

from config import Config
from utils.file_manager import FileManager


class OutputManager:
    _output_dir = Config.OUTPUT_DIR

    @staticmethod
    def get_output_path(sub_dir: str, file_name: str, extension: str = "csv") -> str:
        """
        Constructs a standardized file path within the output directory,
        ensuring the subdirectory exists.

        Args:
            sub_dir (str): The subdirectory within the main output folder (e.g., 'team-velocity').
            file_name (str): The base name of the file, without timestamp or extension.
            extension (str): The file extension (default: 'csv').

        Returns:
            str: The full, standardized path to the output file.
        """
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        full_file_name = f"{file_name}_{timestamp}.{extension}"

        target_dir = os.path.join(OutputManager._output_dir, sub_dir)
        FileManager.create_folder(target_dir)

        return os.path.join(target_dir, full_file_name)

    @staticmethod
    def save_csv_report(
        data: pd.DataFrame,
        sub_dir: str = "",
        file_basename: str = "report",
        output_path: Optional[str] = None,
    ) -> str:
        """
        Saves a DataFrame as a CSV report.

        Args:
            data (pd.DataFrame): Rows to save, written without the index.
            sub_dir (str): The subdirectory for the report when no path is given.
            file_basename (str): The base name for the file when no path is given.
            output_path (Optional[str]): Optional custom full path to save the file.

        Returns:
            str: The path where the file was saved.
        """
        path = output_path or OutputManager.get_output_path(sub_dir, file_basename, "csv")
        FileManager.ensure_parent_folder(path)
        data.to_csv(path, index=False, encoding="utf-8")
        return path
