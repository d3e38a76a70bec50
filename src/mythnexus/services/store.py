from __future__ import annotations

import json
import re
from pathlib import Path
from typing import Mapping, Protocol

from mythnexus.engine.serialize import RecordError, from_record, to_record
from mythnexus.engine.state import MatchConfig, MatchState

from .content import ContentError, ContentService, validate_json

_SAFE_ID = re.compile(r"^[A-Za-z0-9_-]+$")


class MatchStore(Protocol):
    def get(self, match_id: str) -> MatchState | None: ...

    def put(self, match_id: str, state: MatchState) -> None: ...

    def delete(self, match_id: str) -> None: ...


class InMemoryMatchStore:
    """Process-local store. Matches live only as long as the process."""

    def __init__(self) -> None:
        self._matches: dict[str, MatchState] = {}

    def get(self, match_id: str) -> MatchState | None:
        return self._matches.get(match_id)

    def put(self, match_id: str, state: MatchState) -> None:
        self._matches[match_id] = state

    def delete(self, match_id: str) -> None:
        self._matches.pop(match_id, None)

    def __len__(self) -> int:
        return len(self._matches)


def validate_record(record: Mapping[str, object], content: ContentService) -> None:
    """Schema-check a persisted record and its embedded players payload."""
    try:
        validate_json(record, content.load_schema("match_record"), context="match record")
        players = json.loads(str(record["playersJSON"]))
        validate_json(players, content.load_schema("players"), context="playersJSON")
    except ContentError as e:
        raise RecordError(str(e)) from e
    except json.JSONDecodeError as e:
        raise RecordError(f"Invalid playersJSON: {e}") from e


class JsonFileMatchStore:
    """One `<match_id>.json` file per match holding its persisted record."""

    def __init__(self, directory: Path, content: ContentService, config: MatchConfig | None = None) -> None:
        self._dir = directory
        self._content = content
        self._config = config

    def _path(self, match_id: str) -> Path:
        if not _SAFE_ID.match(match_id):
            raise KeyError(match_id)
        return self._dir / f"{match_id}.json"

    def get(self, match_id: str) -> MatchState | None:
        path = self._path(match_id)
        if not path.exists():
            return None
        try:
            record = json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            raise RecordError(f"Invalid JSON in {path}: {e}") from e
        if not isinstance(record, dict):
            raise RecordError(f"{path} must hold an object")
        validate_record(record, self._content)
        return from_record(record, self._config)

    def put(self, match_id: str, state: MatchState) -> None:
        path = self._path(match_id)
        self._dir.mkdir(parents=True, exist_ok=True)
        tmp = path.with_suffix(".json.tmp")
        tmp.write_text(json.dumps(to_record(state), indent=2, ensure_ascii=False), encoding="utf-8")
        tmp.replace(path)

    def delete(self, match_id: str) -> None:
        self._path(match_id).unlink(missing_ok=True)
