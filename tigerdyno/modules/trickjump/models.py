"""Data models for tiers and jumproles.

Models are pydantic so rows read back from the database are checked
against the same limits the commands enforce on input.
"""

from datetime import datetime, timezone
from typing import ClassVar, Optional, Sequence

from pydantic import BaseModel, Field

# Length limits on stored text
NAME_LIMIT = 100
LINK_LIMIT = 150
LOCATION_LIMIT = 200
JUMP_TYPE_LIMIT = 200
DESCRIPTION_LIMIT = 1500

KINGDOM_NAMES = (
    "Cap Kingdom",
    "Cascade Kingdom",
    "Sand Kingdom",
    "Lake Kingdom",
    "Wooded Kingdom",
    "Cloud Kingdom",
    "Lost Kingdom",
    "Night Metro Kingdom",
    "Metro Kingdom",
    "Snow Kingdom",
    "Seaside Kingdom",
    "Luncheon Kingdom",
    "Ruined Kingdom",
    "Bowser's Kingdom",
    "Moon Kingdom",
    "Dark Side",
    "Darker Side",
    "Mushroom Kingdom",
)


class Tier(BaseModel):
    """A named rank grouping jumproles. Higher ordinal, higher tier."""

    id: int
    name: str = Field(..., min_length=1, max_length=NAME_LIMIT)
    ordinal: int = Field(..., ge=0, le=4294967295)
    server: str

    COLUMNS: ClassVar[str] = "id, name, ordinal, server"

    @classmethod
    def from_row(cls, row: Sequence) -> "Tier":
        id_, name, ordinal, server = row
        return cls(id=id_, name=name, ordinal=ordinal, server=str(server))


class Jumprole(BaseModel):
    """A trickjump that server members can hold a role for."""

    id: int
    name: str = Field(..., min_length=1, max_length=NAME_LIMIT)
    kingdom: Optional[str] = None
    location: Optional[str] = Field(default=None, max_length=LOCATION_LIMIT)
    jump_type: Optional[str] = Field(default=None, max_length=JUMP_TYPE_LIMIT)
    link: Optional[str] = Field(default=None, max_length=LINK_LIMIT)
    description: str = Field(..., max_length=DESCRIPTION_LIMIT)
    tier_id: int
    added_by: str
    server: str
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    COLUMNS: ClassVar[str] = (
        "id, name, kingdom, location, jump_type, link, description, "
        "tier_id, added_by, server, updated_at"
    )

    @classmethod
    def from_row(cls, row: Sequence) -> "Jumprole":
        fields = cls.COLUMNS.split(", ")
        return cls(**dict(zip(fields, row)))
