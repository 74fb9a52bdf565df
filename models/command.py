from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict


@dataclass
class Command:
    """A persisted auto-reply rule.

    Attributes:
        id: Opaque unique identifier assigned on creation.
        trigger: Text that fires the rule; matched trimmed and case-folded.
        response: Reply sent back to the sender when the trigger matches.
    """

    id: str
    trigger: str
    response: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "Command":
        return cls(id=str(raw["id"]), trigger=str(raw["trigger"]), response=str(raw["response"]))
