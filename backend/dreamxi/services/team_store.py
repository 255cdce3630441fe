from __future__ import annotations

import json
import logging
import re
import threading
import uuid
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from dreamxi.core.config import get_settings
from dreamxi.schemas.lineup import Lineup, StoredLineup
from dreamxi.services import firebase_client as fb

logger = logging.getLogger(__name__)


class StoreError(RuntimeError):
    """Raised when the backing file or database cannot be read or written."""


# Characters Realtime Database refuses in keys, plus control characters
_FIREBASE_KEY_FORBIDDEN = re.compile(r"[.$#\[\]/\x00-\x1f\x7f]")


def _is_firebase_key(value: str) -> bool:
    return bool(value) and len(value.encode("utf-8")) <= 768 and not _FIREBASE_KEY_FORBIDDEN.search(value)


def _parse_record(record: Dict[str, Any], record_id: str) -> Optional[StoredLineup]:
    try:
        return StoredLineup.model_validate({**record, "id": record_id})
    except ValidationError as exc:
        logger.warning("Skipping unreadable team record %s: %s", record_id, exc.errors()[:1])
        return None


class TeamStore:
    """Ordered collection of accepted lineups, oldest first."""

    backend = "abstract"

    def add(self, lineup: Lineup) -> StoredLineup:
        raise NotImplementedError

    def all(self) -> List[StoredLineup]:
        raise NotImplementedError

    def get(self, team_id: str) -> Optional[StoredLineup]:
        for team in self.all():
            if team.id == team_id:
                return team
        return None

    def delete(self, team_id: str) -> bool:
        raise NotImplementedError

    def clear(self) -> int:
        raise NotImplementedError


class JsonFileStore(TeamStore):
    """Keeps every lineup in one JSON array on disk."""

    backend = "file"

    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        self._lock = threading.Lock()

    def _read(self) -> List[Dict[str, Any]]:
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return []
        except OSError as exc:
            raise StoreError(f"Failed to read {self.path}: {exc}") from exc

        if not raw.strip():
            return []
        try:
            data = json.loads(raw)
        except ValueError as exc:
            raise StoreError(f"{self.path} does not contain valid JSON: {exc}") from exc

        if isinstance(data, list):
            records = data
        elif isinstance(data, dict):
            records = [data]
        else:
            logger.warning("Unexpected %s at top level of %s, treating as empty", type(data).__name__, self.path)
            return []
        # Files written before ids existed get stable positional ids
        out = []
        for idx, record in enumerate(records):
            if isinstance(record, dict):
                out.append({"id": f"legacy-{idx}", **record})
        return out

    def _write(self, records: List[Dict[str, Any]]) -> None:
        tmp = self.path.with_name(self.path.name + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp.write_text(json.dumps(records, indent=2), encoding="utf-8")
            tmp.replace(self.path)
        except OSError as exc:
            raise StoreError(f"Failed to write {self.path}: {exc}") from exc

    def add(self, lineup: Lineup) -> StoredLineup:
        stored = StoredLineup(id=uuid.uuid4().hex, **lineup.model_dump())
        record = lineup.to_json()
        record["id"] = stored.id
        with self._lock:
            records = self._read()
            records.append(record)
            self._write(records)
        logger.debug("Appended team %s to %s (%d total)", stored.id, self.path, len(records))
        return stored

    def all(self) -> List[StoredLineup]:
        with self._lock:
            records = self._read()
        teams = (_parse_record(r, str(r["id"])) for r in records)
        return [t for t in teams if t is not None]

    def delete(self, team_id: str) -> bool:
        with self._lock:
            records = self._read()
            kept = [r for r in records if str(r["id"]) != team_id]
            if len(kept) == len(records):
                return False
            self._write(kept)
        return True

    def clear(self) -> int:
        with self._lock:
            count = len(self._read())
            self._write([])
        return count


class FirebaseStore(TeamStore):
    """Lineups as children of one Realtime Database node, keyed by push id."""

    backend = "firebase"

    def __init__(self, base_url: str, collection: str = "teams", auth_token: Optional[str] = None, timeout: int = 10) -> None:
        self.base_url = base_url
        self.collection = collection.strip("/")
        self.auth_token = auth_token
        self.timeout = timeout

    def _url(self, team_id: Optional[str] = None) -> str:
        path = self.collection if team_id is None else f"{self.collection}/{team_id}"
        return fb.make_url(self.base_url, path, self.auth_token)

    def add(self, lineup: Lineup) -> StoredLineup:
        ok, status, payload = fb.post(self._url(), lineup.to_json(), timeout=self.timeout)
        if not ok:
            raise StoreError(f"Failed to persist to Firebase (status {status}): {payload}")
        push_id = payload.get("name") if isinstance(payload, dict) else None
        if not push_id:
            raise StoreError(f"Firebase did not return a push id: {payload!r}")
        return StoredLineup(id=push_id, **lineup.model_dump())

    def all(self) -> List[StoredLineup]:
        ok, status, payload = fb.get(self._url(), timeout=self.timeout)
        if not ok:
            raise StoreError(f"Failed to load teams from Firebase (status {status}): {payload}")
        if payload is None:
            return []
        if isinstance(payload, dict):
            # Push ids sort chronologically
            items = sorted(payload.items(), key=lambda kv: kv[0])
        elif isinstance(payload, list):
            items = [(str(i), v) for i, v in enumerate(payload) if v is not None]
        else:
            logger.warning("Unexpected Firebase payload for %s: %r", self.collection, payload)
            return []
        teams = (_parse_record(v, k) for k, v in items if isinstance(v, dict))
        return [t for t in teams if t is not None]

    def _fetch(self, team_id: str) -> Optional[Dict[str, Any]]:
        if not _is_firebase_key(team_id):
            return None
        ok, status, payload = fb.get(self._url(team_id), timeout=self.timeout)
        if not ok:
            raise StoreError(f"Failed to load team {team_id} from Firebase (status {status}): {payload}")
        return payload if isinstance(payload, dict) else None

    def get(self, team_id: str) -> Optional[StoredLineup]:
        record = self._fetch(team_id)
        if record is None:
            return None
        return _parse_record(record, team_id)

    def delete(self, team_id: str) -> bool:
        if self._fetch(team_id) is None:
            return False
        ok, status, detail = fb.delete(self._url(team_id), timeout=self.timeout)
        if not ok:
            raise StoreError(f"Failed to delete team {team_id} (status {status}): {detail}")
        return True

    def clear(self) -> int:
        count = len(self.all())
        ok, status, detail = fb.delete(self._url(), timeout=self.timeout)
        if not ok and status not in (200, 204, 404):
            raise StoreError(f"Failed to reset '{self.collection}' (status {status}): {detail}")
        return count


@lru_cache(maxsize=1)
def get_store() -> TeamStore:
    settings = get_settings()
    if settings.store_backend == "firebase":
        if not settings.firebase_url:
            raise StoreError("DREAMXI_FIREBASE_URL must be set when using the firebase store")
        logger.info("Using Firebase store at %s/%s", settings.firebase_url, settings.firebase_collection)
        return FirebaseStore(
            settings.firebase_url,
            collection=settings.firebase_collection,
            auth_token=settings.firebase_auth_token,
            timeout=settings.firebase_timeout,
        )
    logger.info("Using JSON file store at %s", settings.teams_path)
    return JsonFileStore(settings.teams_path)


def reset_store() -> None:
    get_store.cache_clear()
