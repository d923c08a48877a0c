"""Ranking configuration supplied by the host application."""

import logging
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .points import KNOWN_CLASSES, parse_tournament_class

logger = logging.getLogger(__name__)


class RankingConfig(BaseModel):
    """Tunables for ranking, tie detection and points"""

    podium_places: int = Field(
        3, ge=1, le=10, description="Ranks that require a tie-break (default 3)"
    )
    # Unknown class labels award 0 points; strict mode raises instead
    strict_tournament_class: bool = False
    # Used when the store has no class recorded for an event
    default_tournament_class: Optional[str] = Field(None, max_length=50)

    @field_validator("default_tournament_class")
    @classmethod
    def validate_default_class(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        parsed = parse_tournament_class(v)
        if parsed not in KNOWN_CLASSES:
            raise ValueError(f"default_tournament_class must be one of {sorted(KNOWN_CLASSES)}, got {v}")
        return parsed

    @classmethod
    def from_mapping(cls, settings: Optional[Dict[str, Any]]) -> "RankingConfig":
        """
        Build config from host settings

        Raises:
            ValueError: If a setting is invalid
        """
        try:
            return cls(**(settings or {}))
        except Exception as e:
            logger.warning(f"Ranking config validation failed: {e}")
            raise ValueError(f"Invalid ranking config: {str(e)}")

    model_config = ConfigDict(frozen=True, extra="forbid")
