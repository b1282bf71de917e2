from __future__ import annotations

import json
import random
import re
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Iterable, Iterator, Mapping, Optional

from prompts_lib import (
    ASPECT_RATIOS,
    CAMERA_LENSES,
    COMPOSITIONS,
    DEFAULT_ASPECT_RATIO,
    DEFAULT_NEGATIVE,
    DEFAULT_QUALITY,
    LIGHTING,
    MOODS,
    QUICK_STARTERS,
    STYLE_PRESETS,
)

_SEED_INPUT_PATTERN = re.compile(r"[^0-9-]")
_SEED_PATTERN = re.compile(r"-?[0-9]+")

# camelCase keys posted by the browser form
_FIELD_ALIASES = {
    "stylePreset": "style_preset",
    "style": "style_preset",
    "aspectRatio": "aspect_ratio",
    "ar": "aspect_ratio",
    "customTags": "custom_tags",
}


class OrderedTagSet:
    """Insertion-ordered set of trimmed, non-empty tags."""

    def __init__(self, tags: Iterable[str] = ()) -> None:
        self._tags: Dict[str, None] = {}
        for tag in tags:
            self.add(tag)

    def add(self, tag: str) -> bool:
        cleaned = (tag or "").strip()
        if not cleaned or cleaned in self._tags:
            return False
        self._tags[cleaned] = None
        return True

    def union(self, other: Iterable[str]) -> "OrderedTagSet":
        merged = OrderedTagSet(self)
        for tag in other:
            merged.add(tag)
        return merged

    def as_tuple(self) -> tuple[str, ...]:
        return tuple(self._tags)

    def __contains__(self, tag: object) -> bool:
        return isinstance(tag, str) and tag.strip() in self._tags

    def __iter__(self) -> Iterator[str]:
        return iter(self._tags)

    def __len__(self) -> int:
        return len(self._tags)

    def __repr__(self) -> str:
        return f"OrderedTagSet({list(self._tags)!r})"


def sanitize_seed_input(value: str) -> str:
    return _SEED_INPUT_PATTERN.sub("", value or "")


def parse_seed(value: Any) -> Optional[int]:
    """Return the seed as an int, or None when it is absent or not an integer.

    Strings are sanitised first, so ``"12a"`` yields ``12`` while ``""``, ``"-"``
    and ``"1-2"`` yield ``None``.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if value != value or value in {float("inf"), float("-inf")} or not value.is_integer():
            return None
        return int(value)
    if isinstance(value, str):
        cleaned = sanitize_seed_input(value)
        if not _SEED_PATTERN.fullmatch(cleaned):
            return None
        return int(cleaned)
    return None


def _clean(value: Optional[str]) -> str:
    return (value or "").strip()


def _tags(values: Any) -> tuple[str, ...]:
    if values is None:
        return ()
    if isinstance(values, str):
        values = [values]
    return OrderedTagSet(str(value) for value in values).as_tuple()


@dataclass(frozen=True)
class PromptFields:
    subject: str = ""
    action: str = ""
    environment: str = ""
    details: str = ""
    extras: str = ""
    style_preset: str = STYLE_PRESETS[0]["value"]
    mood: str = ""
    lens: str = ""
    lighting: str = ""
    composition: str = ""
    artists: tuple[str, ...] = field(default_factory=tuple)
    materials: tuple[str, ...] = field(default_factory=tuple)
    custom_tags: tuple[str, ...] = field(default_factory=tuple)
    negative: str = DEFAULT_NEGATIVE
    aspect_ratio: str = DEFAULT_ASPECT_RATIO
    quality: str = DEFAULT_QUALITY
    seed: Optional[int] = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "PromptFields":
        """Build fields from a JSON-style mapping (camelCase or snake_case keys)."""
        values: Dict[str, Any] = {}
        known = set(cls.__dataclass_fields__)
        source = dict(data or {})
        params = source.pop("params", None)
        if isinstance(params, Mapping):
            # exported prompt.json documents nest the suffix values
            for key, value in params.items():
                source.setdefault(key, value)
        for key, value in source.items():
            name = _FIELD_ALIASES.get(key, key)
            if name not in known or value is None:
                continue
            values[name] = value

        for name in ("artists", "materials", "custom_tags"):
            if name in values:
                values[name] = _tags(values[name])
        if "seed" in values:
            values["seed"] = parse_seed(values["seed"])
        for name, value in list(values.items()):
            if name not in {"artists", "materials", "custom_tags", "seed"}:
                values[name] = str(value)
        return cls(**values)

    def all_materials(self) -> tuple[str, ...]:
        return OrderedTagSet(self.materials).union(self.custom_tags).as_tuple()


def _labelled(label: str, value: str) -> str:
    cleaned = _clean(value)
    return f"{label}{cleaned}" if cleaned else ""


def _joined(label: str, values: Iterable[str]) -> str:
    items = [item for item in (_clean(value) for value in values) if item]
    return f"{label}{', '.join(items)}" if items else ""


def build_prompt(fields: PromptFields) -> str:
    parts = [
        _clean(fields.subject),
        _clean(fields.action),
        _clean(fields.environment),
        _clean(fields.details),
        _joined("materials: ", fields.all_materials()),
        _labelled("mood: ", fields.mood),
        _labelled("style: ", fields.style_preset),
        _labelled("lens: ", fields.lens),
        _labelled("lighting: ", fields.lighting),
        _labelled("composition: ", fields.composition),
        _joined("by ", fields.artists),
        _clean(fields.extras),
    ]
    main = ", ".join(part for part in parts if part)

    suffix_parts = [
        _labelled("--ar ", fields.aspect_ratio),
        _labelled("--quality ", fields.quality),
        f"--seed {fields.seed}" if isinstance(fields.seed, int) and not isinstance(fields.seed, bool) else "",
    ]
    suffix = " ".join(part for part in suffix_parts if part)

    # an empty main clause never leaves a leading space
    return " ".join(part for part in (main, suffix) if part)


def build_prompt_document(fields: PromptFields) -> Dict[str, Any]:
    return {
        "subject": fields.subject,
        "action": fields.action,
        "environment": fields.environment,
        "details": fields.details,
        "mood": fields.mood,
        "style": fields.style_preset,
        "lens": fields.lens,
        "lighting": fields.lighting,
        "composition": fields.composition,
        "artists": list(fields.artists),
        "materials": list(fields.all_materials()),
        "extras": fields.extras,
        "negative": fields.negative,
        "params": {
            "aspect_ratio": fields.aspect_ratio,
            "quality": fields.quality,
            "seed": fields.seed,
        },
    }


def export_prompt_json(fields: PromptFields) -> str:
    return json.dumps(build_prompt_document(fields), indent=2, ensure_ascii=False)


def fields_to_form(fields: PromptFields) -> Dict[str, Any]:
    """Flat camelCase view used to repopulate the browser form."""
    return {
        "subject": fields.subject,
        "action": fields.action,
        "environment": fields.environment,
        "details": fields.details,
        "extras": fields.extras,
        "stylePreset": fields.style_preset,
        "mood": fields.mood,
        "lens": fields.lens,
        "lighting": fields.lighting,
        "composition": fields.composition,
        "artists": list(fields.artists),
        "materials": list(fields.materials),
        "customTags": list(fields.custom_tags),
        "negative": fields.negative,
        "aspectRatio": fields.aspect_ratio,
        "quality": fields.quality,
        "seed": fields.seed,
    }


def idea_from_fields(fields: PromptFields) -> str:
    pieces = [_clean(fields.subject), _clean(fields.action), _clean(fields.environment)]
    return ", ".join(piece for piece in pieces if piece)


def optimizer_context(fields: PromptFields) -> Dict[str, str]:
    return {
        "style": fields.style_preset,
        "mood": fields.mood,
        "lens": fields.lens,
        "lighting": fields.lighting,
        "composition": fields.composition,
        "ar": fields.aspect_ratio,
    }


def randomize_fields(fields: PromptFields, rng: Optional[random.Random] = None) -> PromptFields:
    picker = rng or random.Random()
    return replace(
        fields,
        style_preset=picker.choice(STYLE_PRESETS)["value"],
        mood=picker.choice(MOODS),
        lens=picker.choice(CAMERA_LENSES),
        lighting=picker.choice(LIGHTING),
        composition=picker.choice(COMPOSITIONS),
        aspect_ratio=picker.choice(ASPECT_RATIOS),
    )


def apply_quick_starter(fields: PromptFields, title: str) -> PromptFields:
    for starter in QUICK_STARTERS:
        if starter["title"] == title:
            fill = dict(starter["fill"])
            fill["style_preset"] = fill.get("style_preset") or STYLE_PRESETS[0]["value"]
            return replace(fields, **fill)
    raise KeyError(f"Unknown quick starter: {title}")
