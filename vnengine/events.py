"""Compiled script events and helpers for inspecting them."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any, Optional, Union

SCRIPT_SCHEMA_VERSION = "1.0"
"""Schema version for JSON scripts."""

COMPILED_FORMAT_VERSION = 1
"""Binary format version for compiled scripts."""

SAVE_FORMAT_VERSION = 1
"""Format version for save files."""

SCRIPT_BINARY_MAGIC = b"VNSC"
"""Magic bytes that open a compiled script binary."""

SAVE_BINARY_MAGIC = b"VNSV"
"""Magic bytes that open a save file."""


def _freeze(instance: object, name: str) -> None:
    object.__setattr__(instance, name, tuple(getattr(instance, name)))


@dataclass(frozen=True)
class Dialogue:
    """A line spoken by a character."""

    speaker: str
    text: str


@dataclass(frozen=True)
class ChoiceOption:
    """One selectable option of a choice, resolved to an instruction pointer."""

    text: str
    target_ip: int


@dataclass(frozen=True)
class Choice:
    """A prompt offering several options."""

    prompt: str
    options: tuple[ChoiceOption, ...] = ()

    def __post_init__(self) -> None:
        _freeze(self, "options")


@dataclass(frozen=True)
class CharacterPlacement:
    """A character shown on screen."""

    name: str
    expression: Optional[str] = None
    position: Optional[str] = None

    def to_dict(self) -> dict[str, Optional[str]]:
        return {"name": self.name, "expression": self.expression, "position": self.position}


@dataclass(frozen=True)
class SceneUpdate:
    """A full scene change."""

    background: Optional[str] = None
    music: Optional[str] = None
    characters: tuple[CharacterPlacement, ...] = ()

    def __post_init__(self) -> None:
        _freeze(self, "characters")


@dataclass(frozen=True)
class CharacterPatch:
    """A partial update to a character already on screen."""

    name: str
    expression: Optional[str] = None
    position: Optional[str] = None

    def to_dict(self) -> dict[str, Optional[str]]:
        return {"name": self.name, "expression": self.expression, "position": self.position}


@dataclass(frozen=True)
class ScenePatch:
    """A partial scene change: add, update or remove characters."""

    background: Optional[str] = None
    music: Optional[str] = None
    add: tuple[CharacterPlacement, ...] = ()
    update: tuple[CharacterPatch, ...] = ()
    remove: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        for name in ("add", "update", "remove"):
            _freeze(self, name)


@dataclass(frozen=True)
class Jump:
    """Unconditional jump."""

    target_ip: int


@dataclass(frozen=True)
class SetFlag:
    """Set a boolean flag."""

    flag_id: int
    value: bool


@dataclass(frozen=True)
class SetVar:
    """Set an integer variable."""

    var_id: int
    value: int


@dataclass(frozen=True)
class JumpIf:
    """Conditional jump; the condition is carried but not interpreted here."""

    target_ip: int
    cond: Any = field(default=None, compare=True)


Event = Union[Dialogue, Choice, SceneUpdate, ScenePatch, Jump, SetFlag, SetVar, JumpIf]

_KINDS: dict[type, str] = {
    Dialogue: "Dialogue",
    Choice: "Choice",
    SceneUpdate: "Scene",
    Jump: "Jump",
    SetFlag: "SetFlag",
    SetVar: "SetVar",
    JumpIf: "JumpIf",
    ScenePatch: "Patch",
}


def event_kind(event: Event) -> str:
    """Return a short display name for the kind of an event."""
    try:
        return _KINDS[type(event)]
    except KeyError:
        raise TypeError(f"not an event: {event!r}") from None


def event_to_dict(event: Event) -> dict[str, Any]:
    """Describe an event as a plain dictionary."""
    match event:
        case Dialogue(speaker=speaker, text=text):
            return {"type": "dialogue", "speaker": speaker, "text": text}
        case Choice(prompt=prompt, options=options):
            return {
                "type": "choice",
                "prompt": prompt,
                "options": [
                    {"text": o.text, "target": o.target_ip, "target_ip": o.target_ip}
                    for o in options
                ],
            }
        case SceneUpdate(background=background, music=music, characters=characters):
            return {
                "type": "scene",
                "background": background,
                "music": music,
                "characters": [c.to_dict() for c in characters],
            }
        case Jump(target_ip=target_ip):
            return {"type": "jump", "target": target_ip, "target_ip": target_ip}
        case SetFlag(flag_id=flag_id, value=value):
            return {"type": "set_flag", "key": flag_id, "flag_id": flag_id, "value": value}
        case SetVar(var_id=var_id, value=value):
            return {"type": "set_var", "var_id": var_id, "value": value}
        case JumpIf(target_ip=target_ip):
            return {"type": "jump_if", "target_ip": target_ip}
        case ScenePatch():
            return {
                "type": "patch",
                "background": event.background,
                "music": event.music,
                "add": [c.to_dict() for c in event.add],
                "update": [c.to_dict() for c in event.update],
                "remove": list(event.remove),
            }
    raise TypeError(f"not an event: {event!r}")


def history_bytes(history: Iterable[Dialogue]) -> int:
    """Approximate memory used by a dialogue history, in UTF-8 bytes."""
    return sum(
        len(entry.speaker.encode("utf-8")) + len(entry.text.encode("utf-8"))
        for entry in history
    )