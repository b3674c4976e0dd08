"""File IO helpers."""
from __future__ import annotations

import json
import pathlib
from typing import Any, Iterable

from .logging import get_logger

LOGGER = get_logger(__name__)


def read_json(path: str | pathlib.Path) -> Any:
    """Load a JSON document from disk."""
    data_path = pathlib.Path(path)
    if not data_path.exists():
        raise FileNotFoundError(f"JSON file not found: {data_path}")
    with data_path.open("r", encoding="utf-8") as handle:
        return json.load(handle)


def write_jsonl(path: str | pathlib.Path, records: Iterable[dict]) -> None:
    """Write an iterable of dictionaries to a JSON Lines file."""
    record_list = list(records)
    data_path = pathlib.Path(path)
    data_path.parent.mkdir(parents=True, exist_ok=True)
    with data_path.open("w", encoding="utf-8") as handle:
        for record in record_list:
            handle.write(json.dumps(record, ensure_ascii=False) + "\n")
    LOGGER.info("Wrote %s records to %s", len(record_list), data_path)


def write_json(path: str | pathlib.Path, payload: Any) -> None:
    """Write a JSON document to disk.

    The payload is serialised before the file is opened so a value that
    cannot be encoded leaves any previous file untouched.
    """
    data_path = pathlib.Path(path)
    encoded = json.dumps(payload, ensure_ascii=False, indent=2)
    data_path.parent.mkdir(parents=True, exist_ok=True)
    with data_path.open("w", encoding="utf-8") as handle:
        handle.write(encoded)
    LOGGER.debug("Wrote JSON document to %s", data_path)
