"""
String key-value stores backing the local complaint cache
"""
import json
import os
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Optional, Union

from complaint_desk.exceptions import CacheError
from complaint_desk.logging_config import logger


class KeyValueStore(ABC):
    """Minimal local-storage style interface: string keys to string values"""

    @abstractmethod
    def get_item(self, key: str) -> Optional[str]:
        pass

    @abstractmethod
    def set_item(self, key: str, value: str) -> None:
        pass

    @abstractmethod
    def remove_item(self, key: str) -> None:
        pass

    def set_items(self, items: Dict[str, str]) -> None:
        """
        Write several keys as one update

        Keys written before a failing write are restored to their previous
        values before the error is re-raised.
        """
        previous = {key: self.get_item(key) for key in items}
        written = []
        try:
            for key, value in items.items():
                self.set_item(key, value)
                written.append(key)
        except (CacheError, OSError):
            for key in written:
                if previous[key] is None:
                    self.remove_item(key)
                else:
                    self.set_item(key, previous[key])
            raise


class MemoryKeyValueStore(KeyValueStore):
    """Process-local store"""

    def __init__(self):
        self._items: Dict[str, str] = {}

    def get_item(self, key: str) -> Optional[str]:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._items[key] = value

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)


class FileKeyValueStore(KeyValueStore):
    """Store persisted as a single JSON object on disk"""

    def __init__(self, path: Union[str, Path]):
        """
        Initialize file-backed store

        Args:
            path: JSON file holding all entries
        """
        self.path = Path(path)
        logger.info(f"File key-value store at {self.path}")

    def _load(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            raise CacheError(f"Could not read {self.path}: {str(e)}") from e

        if not isinstance(data, dict):
            raise CacheError(f"Unexpected content in {self.path}")
        return data

    def _save(self, data: Dict[str, str]) -> None:
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        try:
            if self.path.parent and not self.path.parent.exists():
                self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(tmp_path, 'w', encoding='utf-8') as f:
                json.dump(data, f, ensure_ascii=False)
            # Whole-file replacement keeps each write atomic
            os.replace(tmp_path, self.path)
        except OSError as e:
            raise CacheError(f"Could not write {self.path}: {str(e)}") from e

    def get_item(self, key: str) -> Optional[str]:
        value = self._load().get(key)
        return value if isinstance(value, str) else None

    def set_item(self, key: str, value: str) -> None:
        self.set_items({key: value})

    def set_items(self, items: Dict[str, str]) -> None:
        """All keys land in a single file replacement"""
        try:
            data = self._load()
        except CacheError as e:
            logger.warning(f"Discarding unreadable store contents: {e.message}")
            data = {}
        data.update(items)
        self._save(data)

    def remove_item(self, key: str) -> None:
        data = self._load()
        if key in data:
            del data[key]
            self._save(data)
