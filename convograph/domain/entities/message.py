"""
Domain entity for a single conversation turn.
Zero external dependencies: pure Python dataclass and enum only.

Roles form a closed set. Free-form role strings coming from the outside world
(HTTP payloads, stored transcripts) are validated here, at ingestion, and never
inferred later.
"""

from dataclasses import dataclass
from enum import Enum


class Role(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"

    @classmethod
    def parse(cls, value: "Role | str") -> "Role":
        """Return the Role for *value*.

        Raises:
            ValueError: if *value* is not one of user, assistant or system.
        """
        if isinstance(value, Role):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise ValueError(
                f"Unknown message role {value!r}; expected one of "
                f"{', '.join(r.value for r in cls)}"
            ) from None


@dataclass(frozen=True)
class Message:
    role: Role
    text: str

    def __post_init__(self) -> None:
        object.__setattr__(self, "role", Role.parse(self.role))
        if not isinstance(self.text, str):
            raise TypeError(f"Message text must be str, got {type(self.text).__name__}")

    @classmethod
    def user(cls, text: str) -> "Message":
        return cls(Role.USER, text)

    @classmethod
    def assistant(cls, text: str) -> "Message":
        return cls(Role.ASSISTANT, text)

    @classmethod
    def system(cls, text: str) -> "Message":
        return cls(Role.SYSTEM, text)

    def to_dict(self) -> dict:
        return {"role": self.role.value, "text": self.text}

    @classmethod
    def from_dict(cls, data: dict) -> "Message":
        return cls(Role.parse(data["role"]), data["text"])
