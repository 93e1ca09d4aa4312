"""
File management utilities for certificate and manifest work directories.
"""

import json
import shutil
import tempfile
from pathlib import Path
from typing import Any, Dict, Optional
import logging

logger = logging.getLogger(__name__)


class FileManager:
    """Utilities for file and directory management."""

    @staticmethod
    def ensure_directory(path: Path) -> Path:
        """Ensure directory exists, create if necessary."""
        path = Path(path)
        path.mkdir(parents=True, exist_ok=True)
        return path

    @staticmethod
    def make_work_dir(path: Optional[Path] = None, prefix: str = "sctool-") -> Path:
        """Return ``path`` (created) or a fresh temporary directory."""
        if path is not None:
            return FileManager.ensure_directory(path)
        return Path(tempfile.mkdtemp(prefix=prefix))

    @staticmethod
    def remove_directory(path: Path) -> None:
        logger.info(f"Removing {path}")
        shutil.rmtree(path)

    @staticmethod
    def save_json(data: Dict[str, Any], file_path: Path):
        """Save data as JSON file."""
        with open(file_path, 'w') as f:
            json.dump(data, f, indent=2)
