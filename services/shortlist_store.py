# services/shortlist_store.py

"""
Client-side persistence of CSR shortlists.

Entries live in a small JSON key-value file, one key per user
(`shortlist_<user_id>`), holding the list of saved entries. They are
independent of the underlying request's lifecycle: deleting or completing
a request does not touch anyone's shortlist.
"""

from typing import Dict, List, Optional
from datetime import datetime, timezone
from pathlib import Path
from threading import Lock
import json
import os
import tempfile
import uuid

from core.logging_config import logger
from models.shortlist import ShortlistEntry


KEY_PREFIX = "shortlist_"


class JsonKeyValueStore:
    """Key → JSON value, persisted as one file."""

    def __init__(self, path: Optional[str] = None):
        self.path = Path(path) if path else None
        self._data: Dict[str, object] = {}
        self._lock = Lock()
        self._load()

    def _load(self):
        if not self.path or not self.path.exists():
            return
        try:
            self._data = json.loads(self.path.read_text(encoding="utf-8") or "{}")
        except json.JSONDecodeError as e:
            logger.warning(f"Shortlist store at {self.path} is corrupt, starting empty: {e}")
            self._data = {}

    def _flush(self):
        """Write to a sibling temp file, then swap it in with os.replace."""
        if not self.path:
            return
        directory = self.path.parent.resolve()
        fd, tmp = tempfile.mkstemp(dir=directory, prefix=".shortlists-", suffix=".json")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(self._data, f, ensure_ascii=False, indent=2)
            os.replace(tmp, self.path)
        finally:
            if os.path.exists(tmp):
                os.remove(tmp)

    def keys(self) -> List[str]:
        with self._lock:
            return list(self._data.keys())

    def get(self, key: str, default=None):
        with self._lock:
            return self._data.get(key, default)

    def set(self, key: str, value):
        with self._lock:
            self._data[key] = value
            self._flush()

    def delete(self, key: str):
        with self._lock:
            self._data.pop(key, None)
            self._flush()


class ShortlistStore:
    def __init__(self, store: Optional[JsonKeyValueStore] = None):
        self.store = store or JsonKeyValueStore()

    @staticmethod
    def key_for(user_id: str) -> str:
        return f"{KEY_PREFIX}{user_id}"

    def _read(self, key: str) -> List[ShortlistEntry]:
        raw = self.store.get(key) or []
        if not isinstance(raw, list):
            logger.warning(f"Ignoring malformed shortlist data under {key}")
            return []
        return [ShortlistEntry.model_validate(item) for item in raw]

    def _write(self, user_id: str, entries: List[ShortlistEntry]):
        self.store.set(
            self.key_for(user_id),
            [entry.model_dump(mode="json") for entry in entries],
        )

    def get_user_shortlist(self, user_id: str) -> List[ShortlistEntry]:
        return self._read(self.key_for(user_id))

    def get_all(self) -> List[ShortlistEntry]:
        entries = []
        for key in self.store.keys():
            if key.startswith(KEY_PREFIX):
                entries.extend(self._read(key))
        return entries

    def is_shortlisted(self, user_id: str, request_id: str) -> bool:
        return any(e.request_id == request_id for e in self.get_user_shortlist(user_id))

    def add(self, user_id: str, request: dict, now: Optional[datetime] = None) -> ShortlistEntry:
        entries = self.get_user_shortlist(user_id)
        existing = next((e for e in entries if e.request_id == request["id"]), None)
        if existing:
            return existing

        entry = ShortlistEntry(
            id=str(uuid.uuid4()),
            user_id=user_id,
            request_id=request["id"],
            request=dict(request),
            shortlisted_at=now or datetime.now(timezone.utc),
        )
        self._write(user_id, entries + [entry])
        return entry

    def remove(self, user_id: str, request_id: str) -> bool:
        entries = self.get_user_shortlist(user_id)
        remaining = [e for e in entries if e.request_id != request_id]
        if len(remaining) == len(entries):
            return False
        self._write(user_id, remaining)
        return True

    def toggle(self, user_id: str, request: dict, now: Optional[datetime] = None) -> bool:
        """Save or unsave. Returns True when the request is now shortlisted."""
        if self.remove(user_id, request["id"]):
            return False
        self.add(user_id, request, now)
        return True
