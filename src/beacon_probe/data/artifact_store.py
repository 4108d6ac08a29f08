"""
Artifact Store - JSON documents for every probe response.

Each logical query is written as one file:

    {"timestamp": "<ISO-8601>", "data": <response or null>}

Bulk exports and paginated dumps land in subdirectories of the output root.
"""

import json
import logging
import os
import re
import shutil
from datetime import datetime, timezone
from typing import Any, Dict

logger = logging.getLogger(__name__)

_UNSAFE = re.compile(r"[^a-zA-Z0-9_.-]")


def sanitize(name: Any) -> str:
    """Replace anything outside [A-Za-z0-9_.-] with '_'."""
    return _UNSAFE.sub("_", str(name) if name is not None else "")


def dimension_slug(dimension: str) -> str:
    return sanitize(dimension or "unknown")


def failure_marker(error: BaseException) -> Dict[str, Any]:
    return {"success": False, "error": str(error) or error.__class__.__name__}


class ArtifactStore:
    """Writes timestamped JSON envelopes under one output directory."""

    def __init__(self, base_dir: str):
        self.base_dir = base_dir
        self.written = 0

    def prepare(self) -> str:
        """
        Empty the output directory, or create it when missing.

        The directory itself is kept so an open shell or mount stays valid.
        """
        if os.path.isdir(self.base_dir):
            for name in os.listdir(self.base_dir):
                path = os.path.join(self.base_dir, name)
                if os.path.isdir(path) and not os.path.islink(path):
                    shutil.rmtree(path)
                else:
                    os.remove(path)
        else:
            os.makedirs(self.base_dir, exist_ok=True)
        return self.base_dir

    def ensure_subdir(self, *parts: str) -> str:
        target = os.path.join(self.base_dir, *parts)
        os.makedirs(target, exist_ok=True)
        return target

    def write_json(self, file_name: str, data: Any, subdir: str = None) -> str:
        """
        Persist one response.

        Args:
            file_name: Target file name (relative to the output root or subdir)
            data: Response payload; None is written as null
            subdir: Optional relative subdirectory, created on demand

        Returns:
            Path of the written file
        """
        directory = self.ensure_subdir(subdir) if subdir else self.base_dir
        target = os.path.join(directory, file_name)
        payload = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "data": data,
        }
        with open(target, "w", encoding="utf-8") as f:
            json.dump(payload, f, indent=2, ensure_ascii=False, default=str)
            f.write("\n")
        self.written += 1
        logger.info(f"Wrote {target}")
        return target

    def write_failure(self, file_name: str, error: BaseException, subdir: str = None) -> str:
        return self.write_json(file_name, failure_marker(error), subdir=subdir)
