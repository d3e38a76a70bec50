from __future__ import annotations

import json
from pathlib import Path
from typing import Mapping

from jsonschema import Draft202012Validator

from mythnexus.engine.types import AttackDefinition, CardDatabase, CardDefinition, PassiveEffect


class ContentError(RuntimeError):
    pass


def _load_json(path: Path) -> object:
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError as e:
        raise ContentError(f"Missing content file: {path}") from e
    except json.JSONDecodeError as e:
        raise ContentError(f"Invalid JSON in {path}: {e}") from e


def validate_json(instance: object, schema: object, *, context: str) -> None:
    validator = Draft202012Validator(schema)
    errors = sorted(validator.iter_errors(instance), key=lambda e: [str(p) for p in e.path])
    if errors:
        lines = [f"Schema validation failed for {context}:"]
        for err in errors[:10]:
            loc = "/".join(str(p) for p in err.absolute_path)
            lines.append(f"- {loc}: {err.message}")
        raise ContentError("\n".join(lines))


def _require_str(obj: Mapping[str, object], key: str) -> str:
    v = obj.get(key)
    if not isinstance(v, str):
        raise ContentError(f"Expected string for {key}")
    return v


def _require_int(obj: Mapping[str, object], key: str) -> int:
    v = obj.get(key)
    if not isinstance(v, int) or isinstance(v, bool):
        raise ContentError(f"Expected int for {key}")
    return v


def _optional_str(obj: Mapping[str, object], key: str) -> str | None:
    v = obj.get(key)
    if v is None:
        return None
    if not isinstance(v, str):
        raise ContentError(f"Expected string for {key}")
    return v


def _optional_int(obj: Mapping[str, object], key: str) -> int | None:
    if obj.get(key) is None:
        return None
    return _require_int(obj, key)


def _parse_attacks(raw: object) -> tuple[AttackDefinition, ...]:
    if raw is None:
        return ()
    if not isinstance(raw, list):
        raise ContentError("attacks must be a list")
    out: list[AttackDefinition] = []
    for item in raw:
        if not isinstance(item, dict):
            continue
        out.append(
            AttackDefinition(
                name=_require_str(item, "name"),
                damage=_require_int(item, "damage"),
                description=_optional_str(item, "description") or "",
            )
        )
    return tuple(out)


def _parse_passive(raw: object) -> PassiveEffect | None:
    if raw is None:
        return None
    if not isinstance(raw, dict):
        raise ContentError("passive must be an object")
    return PassiveEffect(
        name=_require_str(raw, "name"),
        description=_require_str(raw, "description"),
        effect=_require_str(raw, "effect"),
    )


class ContentService:
    def __init__(self, data_dir: Path, schema_dir: Path) -> None:
        self._data_dir = data_dir
        self._schema_dir = schema_dir

    def load_schema(self, name: str) -> object:
        return _load_json(self._schema_dir / f"{name}.schema.json")

    def load_cards_db(self) -> CardDatabase:
        cards_path = self._data_dir / "cards.json"
        raw = _load_json(cards_path)
        validate_json(raw, self.load_schema("cards"), context=str(cards_path))

        if not isinstance(raw, dict):
            raise ContentError("cards.json must be an object")
        raw_cards = raw.get("cards")
        if not isinstance(raw_cards, list):
            raise ContentError("cards.json.cards must be a list")

        cards: dict[str, CardDefinition] = {}
        for item in raw_cards:
            if not isinstance(item, dict):
                continue
            card = CardDefinition(
                id=_require_str(item, "id"),
                name=_require_str(item, "name"),
                type=_require_str(item, "type"),  # type: ignore[arg-type]
                mythology=_require_str(item, "mythology"),
                description=_require_str(item, "description"),
                image_url=_optional_str(item, "image_url"),
                hp=_optional_int(item, "hp"),
                max_hp=_optional_int(item, "max_hp"),
                attacks=_parse_attacks(item.get("attacks")),
                passive=_parse_passive(item.get("passive")),
                technique_effect=_optional_str(item, "technique_effect"),
                artifact_effect=_optional_str(item, "artifact_effect"),
            )
            if card.id in cards:
                raise ContentError(f"Duplicate card id: {card.id}")
            cards[card.id] = card
        return CardDatabase(cards=cards)

    def validate_all(self) -> None:
        # Load is validation (schema + parse)
        _ = self.load_cards_db()
        _ = self.load_schema("match_record")
        _ = self.load_schema("players")
