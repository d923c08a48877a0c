from .config import RankingConfig
from .persistence import (
    PersistenceCoordinator,
    PersistFailure,
    PersistResult,
    updates_from_scores,
)
from .points import (
    UnknownTournamentClassError,
    is_known_class,
    medal_for_rank,
    parse_tournament_class,
    points_for,
)
from .ranking import (
    RESOLVED,
    UNSELECTED,
    UNSET,
    CompetitorScore,
    TieBreakStatus,
    TieGroup,
    compute_ranks,
    effective_rank,
    get_tie_groups,
    has_tie_in_podium,
)
from .ranks import format_rank_display, normalize_rank, placement_text
from .seasonal import SeasonalResult, SeasonalSummary, seasonal_points
from .service import EventRankingService, EventStanding, TieBreakReport
from .store import InMemoryScoreStore, ScoreStore
from .tiebreak import (
    TieBreakConsistencyError,
    has_resolved_ties_in_podium,
    match_winners,
    needs_reset,
    podium_tie_groups,
    recompute_standings,
    redo,
    reset_group,
    resolution_status,
    resolve,
    stored_winner_order,
    tie_group_members,
    unresolved_top_tie_groups,
)
from .types import ChampionResultRow, ScoreRow, ScoreRowUpdate, StoreResponse
from .validation import ChampionResultRecord, InputSanitizer, RankUpdate, ScoreRecord

__all__ = [
    "RankingConfig",
    "PersistenceCoordinator",
    "PersistFailure",
    "PersistResult",
    "updates_from_scores",
    "UnknownTournamentClassError",
    "is_known_class",
    "medal_for_rank",
    "parse_tournament_class",
    "points_for",
    "RESOLVED",
    "UNSELECTED",
    "UNSET",
    "CompetitorScore",
    "TieBreakStatus",
    "TieGroup",
    "compute_ranks",
    "effective_rank",
    "get_tie_groups",
    "has_tie_in_podium",
    "format_rank_display",
    "normalize_rank",
    "placement_text",
    "SeasonalResult",
    "SeasonalSummary",
    "seasonal_points",
    "EventRankingService",
    "EventStanding",
    "TieBreakReport",
    "InMemoryScoreStore",
    "ScoreStore",
    "TieBreakConsistencyError",
    "has_resolved_ties_in_podium",
    "match_winners",
    "needs_reset",
    "podium_tie_groups",
    "recompute_standings",
    "redo",
    "reset_group",
    "resolution_status",
    "resolve",
    "stored_winner_order",
    "tie_group_members",
    "unresolved_top_tie_groups",
    "ChampionResultRow",
    "ScoreRow",
    "ScoreRowUpdate",
    "StoreResponse",
    "InputSanitizer",
    "RankUpdate",
    "ChampionResultRecord",
    "ScoreRecord",
]
