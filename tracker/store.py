"""Persistence for the channel -> uploads document."""

from __future__ import annotations

import json
import logging
import threading
from abc import ABC, abstractmethod
from pathlib import Path
from tempfile import NamedTemporaryFile
from typing import Any, Dict, Optional

from pydantic import ValidationError

from .models import ChannelState, StoreSnapshot

logger = logging.getLogger(__name__)


class ChannelStore(ABC):
    """Whole-document store: ``load()`` a snapshot, mutate it, ``save()`` it back.

    Implementations only need load/save. ``commit_channel`` layers a short
    critical section on top so that writers working on different channels do
    not overwrite each other's entries.
    """

    def __init__(self) -> None:
        self._write_lock = threading.Lock()

    @abstractmethod
    def load(self) -> StoreSnapshot:
        raise NotImplementedError

    @abstractmethod
    def save(self, snapshot: StoreSnapshot) -> None:
        raise NotImplementedError

    def get_channel(self, channel_id: str) -> Optional[ChannelState]:
        return self.load().channels.get(channel_id)

    def commit_channel(self, channel_id: str, state: ChannelState) -> None:
        """Replace one channel's entry, re-reading the document first."""
        with self._write_lock:
            snapshot = self.load()
            snapshot.channels[channel_id] = state
            self.save(snapshot)


class JsonFileStore(ChannelStore):
    """Stores the snapshot as a single JSON file, replaced atomically on save."""

    def __init__(self, store_path: str):
        super().__init__()
        self._path = Path(store_path)

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> StoreSnapshot:
        if not self._path.exists():
            self._path.parent.mkdir(parents=True, exist_ok=True)
            snapshot = StoreSnapshot()
            self.save(snapshot)
            return snapshot
        try:
            with self._path.open("r", encoding="utf-8") as handle:
                data = json.load(handle)
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            logger.warning("Store file %s is unreadable (%s). Starting empty.", self._path, exc)
            return StoreSnapshot()
        return self._parse(data)

    def save(self, snapshot: StoreSnapshot) -> None:
        serializable = snapshot.model_dump(mode="json")
        self._path.parent.mkdir(parents=True, exist_ok=True)
        with NamedTemporaryFile("w", dir=self._path.parent, delete=False, encoding="utf-8") as tmp:
            json.dump(serializable, tmp, ensure_ascii=False, indent=2)
            tmp.flush()
        Path(tmp.name).replace(self._path)

    def _parse(self, data: Any) -> StoreSnapshot:
        channels: Dict[str, ChannelState] = {}
        raw_channels = data.get("channels") if isinstance(data, dict) else None
        for channel_id, entry in (raw_channels or {}).items():
            try:
                channels[channel_id] = ChannelState.model_validate(entry)
            except ValidationError as exc:
                logger.warning("Skipping invalid channel entry %s: %s", channel_id, exc)
        return StoreSnapshot(channels=channels)


class MemoryStore(ChannelStore):
    """Keeps a serialized copy in memory; loads hand out independent snapshots."""

    def __init__(self, snapshot: Optional[StoreSnapshot] = None):
        super().__init__()
        self._data = (snapshot or StoreSnapshot()).model_dump(mode="json")
        self.save_count = 0

    def load(self) -> StoreSnapshot:
        return StoreSnapshot.model_validate(self._data)

    def save(self, snapshot: StoreSnapshot) -> None:
        self._data = snapshot.model_dump(mode="json")
        self.save_count += 1


__all__ = ["ChannelStore", "JsonFileStore", "MemoryStore"]
