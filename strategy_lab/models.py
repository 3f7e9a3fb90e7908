from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import List, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from strategy_lab.errors import ValidationError


class Timeframe(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


COMPETITION_LEVELS = ("Low", "Medium", "High")
TREND_POINTS = 7


class KeywordQuery(BaseModel):
    model_config = ConfigDict(frozen=True)

    keyword: str
    location: str
    timeframe: Timeframe = Timeframe.MONTHLY

    @classmethod
    def create(cls, keyword: str, location: str, timeframe="monthly") -> "KeywordQuery":
        """Trim the user's input and reject blanks before anything leaves the browser."""
        keyword = (keyword or "").strip()
        location = (location or "").strip()
        if not keyword:
            raise ValidationError("Enter a keyword to analyze.")
        if not location:
            raise ValidationError("Enter a target location.")
        try:
            timeframe = Timeframe(timeframe)
        except ValueError:
            raise ValidationError(f"Unknown timeframe: {timeframe!r}")
        return cls(keyword=keyword, location=location, timeframe=timeframe)


class TrendPoint(BaseModel):
    model_config = ConfigDict(frozen=True)

    date: str
    value: float


class Source(BaseModel):
    model_config = ConfigDict(frozen=True)

    uri: str
    title: str = ""


class KeywordPayload(BaseModel):
    """Structured body returned by the analysis model."""

    model_config = ConfigDict(frozen=True)

    volume: float = Field(..., ge=0)
    competition: Literal["Low", "Medium", "High"]
    analysis: str
    trend: List[TrendPoint] = Field(..., min_length=TREND_POINTS, max_length=TREND_POINTS)

    @field_validator("competition", mode="before")
    @classmethod
    def _canonical_competition(cls, value):
        if isinstance(value, str):
            for level in COMPETITION_LEVELS:
                if value.strip().lower() == level.lower():
                    return level
        return value


class KeywordResult(KeywordPayload):
    keyword: str
    location: str
    sources: List[Source] = Field(default_factory=list)


class ChatMessage(BaseModel):
    model_config = ConfigDict(frozen=True)

    role: Literal["user", "bot"]
    text: str


class ChatTurn(BaseModel):
    model_config = ConfigDict(frozen=True)

    role: Literal["user", "model"]
    text: str


@dataclass(frozen=True)
class InlineImage:
    data: bytes
    mime_type: str = "image/png"


@dataclass(frozen=True)
class ImageHistoryEntry:
    id: str
    url: str
    prompt: str
    timestamp: datetime
