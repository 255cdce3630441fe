from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class Lineup(BaseModel):
    """A validated Dream XI lineup. Serialized with camelCase keys."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    submitter_name: str = Field(alias="submitterName", min_length=1)
    goalkeeper: str = Field(min_length=1)
    defenders: List[str] = Field(default_factory=list)
    midfielders: List[str] = Field(default_factory=list)
    forwards: List[str] = Field(default_factory=list)
    formation: Optional[str] = None  # only kept when it decided the counts
    created_at: datetime = Field(alias="createdAt")

    @property
    def total_players(self) -> int:
        return 1 + len(self.defenders) + len(self.midfielders) + len(self.forwards)

    def players(self) -> List[str]:
        return [self.goalkeeper, *self.defenders, *self.midfielders, *self.forwards]

    def has_player(self, name: str) -> bool:
        needle = (name or "").strip().casefold()
        return bool(needle) and any(p.casefold() == needle for p in self.players())

    def to_json(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class StoredLineup(Lineup):
    id: str
    # Records saved by the first file-backed release carry no timestamp
    created_at: Optional[datetime] = Field(default=None, alias="createdAt")

    def to_json(self) -> dict:
        data = super().to_json()
        data["totalPlayers"] = self.total_players
        return data
