"""Dictionary entry record and on-disk schema."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List

from jsonschema import Draft7Validator

ENTRY_SCHEMA: Dict[str, Any] = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "type": "object",
    "required": ["entry", "definition", "author"],
    "properties": {
        "entry": {"type": "string", "minLength": 1},
        "definition": {"type": "string"},
        "author": {"type": "string"},
    },
}

_validator = Draft7Validator(ENTRY_SCHEMA)


def entry_errors(payload: Any) -> List[str]:
    """Return validation messages for a raw record, empty if it is valid."""
    errors = sorted(_validator.iter_errors(payload), key=lambda e: list(e.path))
    return [error.message for error in errors]


@dataclass(frozen=True)
class DictEntry:
    name: str
    definition: str
    author: str

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DictEntry":
        messages = entry_errors(data)
        if messages:
            raise ValueError(f"invalid dictionary entry: {', '.join(messages)}")
        return cls(
            name=data["entry"],
            definition=data["definition"],
            author=data["author"],
        )

    def to_dict(self) -> Dict[str, str]:
        return {
            "entry": self.name,
            "definition": self.definition,
            "author": self.author,
        }


def check_encodable(**fields: str) -> None:
    """Raise ValueError if any field cannot be written to the UTF-8 backing file."""
    for field_name, value in fields.items():
        try:
            value.encode("utf-8")
        except UnicodeEncodeError as e:
            raise ValueError(f"{field_name} contains text that cannot be stored: {e.reason}") from e
