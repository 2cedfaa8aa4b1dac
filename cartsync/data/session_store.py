"""Key-value stores for the persisted login identity (token, username, balance)."""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Dict, Optional

import structlog

logger = structlog.get_logger(__name__)

SESSION_FILE_MODE = 0o600


class MemorySessionStore:
    """Process-local store, used by tests and one-shot runs."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = str(value)

    def clear(self) -> None:
        self._data.clear()

    def as_dict(self) -> Dict[str, str]:
        return dict(self._data)


class FileSessionStore:
    """JSON-file store so a login survives between CLI invocations."""

    def __init__(self, state_path: Path):
        """Initialise the store, loading the backing JSON file if present."""
        self.state_path = Path(state_path)
        self._data = self._load()

    def _load(self) -> Dict[str, str]:
        """Load existing keys from disk."""
        if not self.state_path.exists():
            return {}
        try:
            raw = json.loads(self.state_path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            logger.warning("Failed to load session store", path=str(self.state_path), error=str(exc))
            return {}
        if not isinstance(raw, dict):
            logger.warning("Ignoring malformed session store", path=str(self.state_path))
            return {}
        return {str(k): str(v) for k, v in raw.items() if v is not None}

    def _save(self) -> None:
        """Persist current keys to disk, readable by the owner only."""
        self.state_path.parent.mkdir(parents=True, exist_ok=True)
        fd = os.open(self.state_path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, SESSION_FILE_MODE)
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            json.dump(self._data, handle, indent=2)
        # O_CREAT mode only applies to new files
        os.chmod(self.state_path, SESSION_FILE_MODE)

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = str(value)
        self._save()

    def clear(self) -> None:
        self._data = {}
        if self.state_path.exists():
            self.state_path.unlink()
        logger.debug("Session store cleared", path=str(self.state_path))
