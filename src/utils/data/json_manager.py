import json
import os
from typing import Any, Dict, Iterator, Tuple

from filelock import FileLock


class JSONManager:
    """
    JSON file-specific operations: whole-document reads and append-only JSON-lines logs.

    Example Usage:
        >>> JSONManager.read_json("team.json", default={})
        {}

        >>> JSONManager.append_json_line({"query": "q", "response": {}}, "cache.jsonl")
        True
    """

    @staticmethod
    def read_json(file_path: str, default: Any = None) -> Any:
        """
        Reads and returns content from a JSON file. Returns a default value if file does not exist.

        Args:
            file_path (str): Path to the JSON file.
            default (Any): Value to return if the file is not found. Defaults to None.

        Returns:
            Any: Parsed content of the JSON file or the default value.
        """
        if not os.path.exists(file_path):
            if default is not None:
                return default
            raise FileNotFoundError(f"JSON file not found: {file_path}")
        with open(file_path, "r", encoding="utf-8") as file:
            return json.load(file)

    @staticmethod
    def create_json(data: Any) -> str:
        """Serializes data deterministically (sorted keys, compact separators)."""
        return json.dumps(data, sort_keys=True, separators=(",", ":"), ensure_ascii=False)

    @staticmethod
    def append_json_line(data: Dict, file_path: str) -> bool:
        """
        Appends one JSON document as a single line. Existing lines are never rewritten.

        Args:
            data (Dict): Document to append.
            file_path (str): Path to the JSON-lines file.

        Returns:
            bool: True if the operation is successful.
        """
        line = JSONManager.create_json(data)
        lock = FileLock(f"{file_path}.lock")
        with lock:
            with open(file_path, "a", encoding="utf-8") as file:
                file.write(line + "\n")
        return True

    @staticmethod
    def iter_json_lines(file_path: str) -> Iterator[Tuple[int, Any]]:
        """
        Yields ``(line_number, document)`` for each line of a JSON-lines file.

        Blank lines are skipped. A line that is not valid JSON yields ``(line_number, None)``
        so the caller can decide how to report it.

        Args:
            file_path (str): Path to the JSON-lines file.
        """
        if not os.path.exists(file_path):
            return
        lock = FileLock(f"{file_path}.lock")
        with lock:
            with open(file_path, "r", encoding="utf-8") as file:
                lines = file.readlines()
        for number, raw in enumerate(lines, start=1):
            raw = raw.strip()
            if not raw:
                continue
            try:
                yield number, json.loads(raw)
            except ValueError:
                yield number, None
