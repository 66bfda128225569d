from __future__ import annotations

from typing import Any, Dict, Literal, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


Difficulty = Literal["easy", "medium", "hard"]
StatValue = Union[int, float]


class _Record(BaseModel):
    """Typed core plus passthrough of any extra stored fields."""

    model_config = ConfigDict(
        extra="allow",
        populate_by_name=True,
        alias_generator=to_camel,
    )

    def to_payload(self, *, exclude_unset: bool = False) -> Dict[str, Any]:
        """JSON-ready dict using the stored (camelCase) field names."""
        return self.model_dump(by_alias=True, mode="json", exclude_unset=exclude_unset)

    @property
    def extra_fields(self) -> Dict[str, Any]:
        return dict(self.model_extra or {})


class UserRecord(_Record):
    """
    Stored user account.

    Fields
    - username: unique key within the user list.
    - password: opaque credential compared by exact equality.
    - stats: free-form counters (e.g., wins, losses, games_played).
    """

    username: str
    password: str
    stats: Dict[str, StatValue] = Field(default_factory=dict)


class GameSnapshot(_Record):
    """The single in-progress game; game fields are kept as extras."""

    timestamp: str
    version: str

    def game_fields(self) -> Dict[str, Any]:
        return self.extra_fields


class HistoryEntry(_Record):
    """A completed game, stamped with completion time and a numeric id."""

    completed_at: str
    id: int


class Settings(_Record):
    sound_enabled: bool = True
    auto_save: bool = True
    difficulty: Difficulty = "medium"

    @classmethod
    def defaults(cls) -> "Settings":
        return cls()


DEFAULT_SETTINGS: Dict[str, Any] = Settings.defaults().to_payload()
