"""
Store boundary schemas using Pydantic v2
Validates rows read from the score store and updates written back to it
"""

import logging
import math
import re
from datetime import date, datetime
from typing import Any, Dict, Optional, Self

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    ValidationInfo,
    field_validator,
    model_validator,
)

from .ranking import CompetitorScore, TieBreakStatus, coerce_score
from .ranks import normalize_rank

logger = logging.getLogger(__name__)

# ==================== ROWS READ FROM THE STORE ====================


class ScoreRecord(BaseModel):
    """One event_scores row, coerced into ranking-ready values"""

    id: str = Field(..., min_length=1, max_length=255, description="Score row id")
    competitor_id: Optional[str] = Field(
        None,
        validation_alias=AliasChoices("competitor_id", "tournament_competitor_id", "competitorId"),
        description="Participant entity id",
    )
    name: str = Field("", max_length=255, description="Display name")

    # Missing/negative/garbage scores rank as 0 rather than being rejected
    total_score: float = Field(
        0.0, validation_alias=AliasChoices("total_score", "totalScore")
    )
    judge_a_score: Optional[float] = None
    judge_b_score: Optional[float] = None
    judge_c_score: Optional[float] = None

    rank: Optional[int] = None
    final_rank: Optional[int] = Field(
        None, validation_alias=AliasChoices("final_rank", "finalRank")
    )
    # Legacy mirror of final_rank; only consulted when final_rank is absent
    placement: Optional[int] = None
    medal: Optional[str] = None
    points: Optional[int] = Field(
        None, validation_alias=AliasChoices("points", "points_earned")
    )
    tie_breaker_status: Optional[str] = Field(
        None, validation_alias=AliasChoices("tie_breaker_status", "tieBreakerStatus")
    )

    @field_validator("id", "competitor_id", mode="before")
    @classmethod
    def coerce_identifier(cls, v: Any) -> Any:
        """Stores may hand back integer ids"""
        if isinstance(v, int) and not isinstance(v, bool):
            return str(v)
        return v

    @field_validator("name", mode="before")
    @classmethod
    def sanitize_name(cls, v: Any) -> str:
        if v is None:
            return ""
        return InputSanitizer.sanitize_competitor_name(v if isinstance(v, str) else str(v))

    @field_validator("total_score", mode="before")
    @classmethod
    def coerce_total_score(cls, v: Any) -> float:
        return coerce_score(v)

    @field_validator("judge_a_score", "judge_b_score", "judge_c_score", mode="before")
    @classmethod
    def coerce_judge_score(cls, v: Any) -> Optional[float]:
        if v is None or v == "":
            return None
        return coerce_score(v)

    @field_validator("rank", "final_rank", "placement", mode="before")
    @classmethod
    def coerce_rank(cls, v: Any) -> Optional[int]:
        return normalize_rank(v)

    @field_validator("points", mode="before")
    @classmethod
    def coerce_points(cls, v: Any) -> Optional[int]:
        if v is None or isinstance(v, bool):
            return None
        try:
            points = float(v)
        except (TypeError, ValueError, OverflowError):
            logger.debug(f"Ignoring non-numeric points value: {v!r}")
            return None
        if not math.isfinite(points):
            logger.debug(f"Ignoring non-finite points value: {v!r}")
            return None
        return max(0, int(points))

    @field_validator("medal", "tie_breaker_status", mode="before")
    @classmethod
    def blank_to_none(cls, v: Any) -> Optional[str]:
        if v is None:
            return None
        v = str(v).strip()
        return v or None

    def to_competitor(self) -> CompetitorScore:
        judges = (self.judge_a_score, self.judge_b_score, self.judge_c_score)
        return CompetitorScore(
            id=self.id,
            competitor_id=self.competitor_id,
            name=self.name,
            total_score=self.total_score,
            judge_scores=judges if any(j is not None for j in judges) else None,
            rank=self.rank,
            final_rank=self.final_rank if self.final_rank is not None else self.placement,
            medal=self.medal,
            points=self.points,
            tie_break_status=TieBreakStatus.parse(self.tie_breaker_status),
        )

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class ChampionResultRecord(BaseModel):
    """One scored event of a champion, with its tournament context"""

    id: str = Field(..., min_length=1, max_length=255, description="Score row id")
    event_id: str = Field(..., min_length=1, max_length=255)
    event_name: str = Field("Unknown Event", max_length=255)
    event_type: str = Field("traditional_forms", max_length=100)
    final_rank: Optional[int] = None
    # None when the row has no total; the judge scores are summed instead
    total_score: Optional[float] = None
    judge_a_score: float = 0.0
    judge_b_score: float = 0.0
    judge_c_score: float = 0.0
    tournament_name: str = Field("Unknown Tournament", max_length=255)
    tournament_class: Optional[str] = Field(
        None, validation_alias=AliasChoices("tournament_class", "class")
    )
    tournament_date: Optional[date] = None

    @field_validator("id", "event_id", mode="before")
    @classmethod
    def coerce_identifier(cls, v: Any) -> Any:
        if isinstance(v, int) and not isinstance(v, bool):
            return str(v)
        return v

    @field_validator("event_name", "tournament_name", "event_type", mode="before")
    @classmethod
    def default_blank_labels(cls, v: Any, info: ValidationInfo) -> str:
        if v is None or not str(v).strip():
            return cls.model_fields[info.field_name].default
        return InputSanitizer.sanitize_competitor_name(v)

    @field_validator("final_rank", mode="before")
    @classmethod
    def coerce_rank(cls, v: Any) -> Optional[int]:
        return normalize_rank(v)

    @field_validator("total_score", mode="before")
    @classmethod
    def coerce_total_score(cls, v: Any) -> Optional[float]:
        if v is None or v == "":
            return None
        return coerce_score(v) or None

    @field_validator("judge_a_score", "judge_b_score", "judge_c_score", mode="before")
    @classmethod
    def coerce_judge_score(cls, v: Any) -> float:
        return coerce_score(v)

    @field_validator("tournament_class", mode="before")
    @classmethod
    def blank_class_to_none(cls, v: Any) -> Optional[str]:
        if v is None:
            return None
        v = str(v).strip()
        return v or None

    @field_validator("tournament_date", mode="before")
    @classmethod
    def coerce_date(cls, v: Any) -> Optional[date]:
        """ISO dates or datetimes; anything unreadable counts as undated"""
        if v is None or isinstance(v, bool):
            return None
        if isinstance(v, datetime):
            return v.date()
        if isinstance(v, date):
            return v
        try:
            return datetime.fromisoformat(str(v).strip()).date()
        except ValueError:
            logger.debug(f"Ignoring unreadable tournament date: {v!r}")
            return None

    @property
    def score_total(self) -> float:
        if self.total_score is not None:
            return self.total_score
        return self.judge_a_score + self.judge_b_score + self.judge_c_score

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


# ==================== UPDATES WRITTEN TO THE STORE ====================


_STATUS_PATTERN = re.compile(r"^(selected_[1-9]\d*|unselected|resolved)$")


class RankUpdate(BaseModel):
    """Partial row update; placement always mirrors final_rank"""

    id: str = Field(..., min_length=1, max_length=255)
    rank: Optional[int] = Field(None, ge=1)
    final_rank: Optional[int] = Field(None, ge=1)
    placement: Optional[int] = Field(None, ge=1)
    medal: Optional[str] = Field(None, max_length=8)
    points: Optional[int] = Field(None, ge=0)
    tie_breaker_status: Optional[str] = None

    @field_validator("tie_breaker_status")
    @classmethod
    def validate_status(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        if not _STATUS_PATTERN.match(v):
            raise ValueError(
                f"tie_breaker_status must be selected_<k>, unselected or resolved, got {v}"
            )
        return v

    @model_validator(mode="after")
    def mirror_placement(self) -> Self:
        """placement and final_rank denormalize the same value"""
        if self.placement != self.final_rank:
            if "placement" in self.model_fields_set:
                logger.warning(
                    f"Row {self.id}: placement {self.placement} overridden by final_rank {self.final_rank}"
                )
            self.placement = self.final_rank
        return self

    @classmethod
    def from_competitor(cls, score: CompetitorScore) -> "RankUpdate":
        return cls(
            id=score.id,
            rank=score.rank,
            final_rank=score.final_rank,
            medal=score.medal,
            points=score.points,
            tie_breaker_status=score.tie_break_status.serialize(),
        )

    @classmethod
    def reset(cls, score_id: str) -> "RankUpdate":
        """Clear tie-break state on a row"""
        return cls(id=score_id, final_rank=None, medal=None, points=None, tie_breaker_status=None)

    def to_fields(self) -> Dict[str, Any]:
        """Store payload: final_rank/placement/status always, the rest when given"""
        always = {"final_rank", "placement", "tie_breaker_status"}
        include = always | (self.model_fields_set & {"rank", "medal", "points"})
        return self.model_dump(include=include)


class InputSanitizer:
    """Utility class for input sanitization"""

    NAME_MAX_LENGTH = 255
    _NAME_STRIP = re.compile(r'[<>{}[\]\\|;&$`"\*\x00-\x1f\x7f]')

    @staticmethod
    def sanitize_competitor_name(name: Any) -> str:
        """Display name: markup/control characters removed, letters of any script kept"""
        if name is None:
            return ""
        name = InputSanitizer._NAME_STRIP.sub("", str(name))
        return name.strip()[: InputSanitizer.NAME_MAX_LENGTH].strip()

    @staticmethod
    def validate_row(row: Dict[str, Any]) -> ScoreRecord:
        """
        Validate and coerce one store row

        Returns:
            ScoreRecord: Validated row

        Raises:
            ValueError: If the row cannot be read (e.g. no id)
        """
        try:
            return ScoreRecord.model_validate(row)
        except Exception as e:
            logger.warning(f"Score row validation failed: {e}")
            raise ValueError(f"Invalid score row: {str(e)}")


# ==================== EXPORT ====================

__all__ = [
    "ScoreRecord",
    "ChampionResultRecord",
    "RankUpdate",
    "InputSanitizer",
]
