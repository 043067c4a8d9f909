"""Small string key/value stores for user preferences."""

import json
import os
import logging
from pathlib import Path
from typing import Optional, Protocol

logger = logging.getLogger(__name__)


class PreferenceStore(Protocol):
    """Get/set a string by key."""

    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str) -> None: ...

    def remove(self, key: str) -> None: ...


class MemoryPreferenceStore:
    """Preferences held in a dict, lost on exit."""

    def __init__(self, initial: Optional[dict[str, str]] = None) -> None:
        self.values: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self.values.get(key)

    def set(self, key: str, value: str) -> None:
        self.values[key] = value

    def remove(self, key: str) -> None:
        self.values.pop(key, None)


class JsonPreferenceStore:
    """Preferences persisted to a JSON file."""

    def __init__(self, path: Optional[str] = None) -> None:
        """
        Initialize the store.

        Args:
            path: Path of the JSON file. Defaults to ~/.fakenft_preferences.json
        """
        if path is None:
            path = str(Path.home() / ".fakenft_preferences.json")
        self.path = path
        self.values: dict[str, str] = self._load()

    def _load(self) -> dict[str, str]:
        """Load preferences from file if it exists."""
        if os.path.exists(self.path):
            try:
                with open(self.path, "r") as f:
                    data = json.load(f)
                if isinstance(data, dict):
                    return {str(k): str(v) for k, v in data.items()}
                logger.warning(f"Ignoring malformed preferences file {self.path}")
            except (json.JSONDecodeError, OSError) as e:
                # If file is corrupted, start fresh
                logger.warning(f"Could not load preferences: {e}")
        return {}

    def _save(self) -> None:
        with open(self.path, "w") as f:
            json.dump(self.values, f, indent=2)
        os.chmod(self.path, 0o600)

    def get(self, key: str) -> Optional[str]:
        return self.values.get(key)

    def set(self, key: str, value: str) -> None:
        self.values[key] = value
        self._save()
        logger.debug(f"Saved preference {key}={value}")

    def remove(self, key: str) -> None:
        if self.values.pop(key, None) is not None:
            self._save()
