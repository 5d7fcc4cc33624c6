"""
Read-only views produced by the derived-stats engine.
They have no identity beyond "current computed value".
"""

from typing import List, Literal

from pydantic import BaseModel, Field

HeartMarker = Literal["full", "empty", "temp"]


class PoolReading(BaseModel):
    key: str
    current: int = 0
    max: int = 0
    temp: int = 0
    ring_cap: int = 0
    temp_allowed: bool = False
    p1: float = Field(0.0, description="Fill of the first half-ring, 0..1.")
    p2: float = Field(0.0, description="Fill of the second half-ring, 0..1.")
    t: float = Field(0.0, description="Fill of the temp ring, 0..1.")

    @property
    def text(self) -> str:
        base = f"{self.current}/{self.max}"
        return f"{base} +{self.temp}" if self.temp > 0 else base


class HeartsReading(BaseModel):
    hp: int = 0
    max: int = 0
    temp: int = 0
    markers: List[HeartMarker] = Field(default_factory=list)
    overflow: int = 0

    @property
    def needs_max(self) -> bool:
        """Nothing to draw until a max (or temp) is set."""
        return not self.markers


class SkillReading(BaseModel):
    skill: str
    label: str
    ability: str
    proficient: bool = False
    total: int = 0
    display: str = "+0"


class AbilityReading(BaseModel):
    ability: str
    score: int = 10
    modifier: int = 0
    base_display: str = "0"
    bonus_display: str = "+0"
