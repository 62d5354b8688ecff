from __future__ import annotations

import json
from importlib import resources
from typing import Any


def load_ingestion_sample(name: str) -> Any:
    """Return a fresh copy of a stored raw provider payload."""
    resource = resources.files(__name__).joinpath(f"{name}.json")
    if not resource.is_file():
        raise FileNotFoundError(f"No ingestion sample named {name}")
    return json.loads(resource.read_text(encoding="utf-8"))
