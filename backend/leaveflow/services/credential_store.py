"""
Durable key-value storage for the local fallback auth provider.

Values are text. Records are wrapped in a small versioned envelope
({"version": 1, "data": ...}) before they are stored; decode_record raises
MalformedStoredData for anything it cannot read back.
"""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Optional, Protocol

from leaveflow.core.errors import MalformedStoredData

logger = logging.getLogger(__name__)

USERS_KEY = "leaveflow_users"
SESSION_KEY = "leaveflow_session"

SCHEMA_VERSION = 1


class CredentialStore(Protocol):
    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str) -> None: ...

    def delete(self, key: str) -> None: ...


class InMemoryCredentialStore:
    def __init__(self, initial: Optional[dict[str, str]] = None):
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def delete(self, key: str) -> None:
        self._data.pop(key, None)


class JsonFileCredentialStore:
    """All keys live in one JSON object on disk, rewritten atomically on change."""

    def __init__(self, path: str | os.PathLike):
        self.path = Path(path)

    def _load(self) -> dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8") or "{}")
        except (OSError, ValueError) as e:
            logger.warning("Credential store %s unreadable, treating as empty: %s", self.path, e)
            return {}
        if not isinstance(raw, dict):
            logger.warning("Credential store %s is not a JSON object, treating as empty", self.path)
            return {}
        return {k: v for k, v in raw.items() if isinstance(v, str)}

    def _save(self, data: dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(dir=self.path.parent, prefix=".credentials-", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, sort_keys=True)
            os.replace(tmp, self.path)
        except BaseException:
            if os.path.exists(tmp):
                os.unlink(tmp)
            raise

    def get(self, key: str) -> Optional[str]:
        return self._load().get(key)

    def set(self, key: str, value: str) -> None:
        data = self._load()
        data[key] = value
        self._save(data)

    def delete(self, key: str) -> None:
        data = self._load()
        if key in data:
            del data[key]
            self._save(data)


def encode_record(data: Any) -> str:
    return json.dumps({"version": SCHEMA_VERSION, "data": data})


def decode_record(key: str, value: str) -> Any:
    try:
        envelope = json.loads(value)
    except ValueError as e:
        raise MalformedStoredData(key, f"not JSON ({e})") from e

    if not isinstance(envelope, dict) or "data" not in envelope:
        raise MalformedStoredData(key, "missing envelope")
    if envelope.get("version") != SCHEMA_VERSION:
        raise MalformedStoredData(key, f"unsupported version {envelope.get('version')!r}")

    return envelope["data"]
