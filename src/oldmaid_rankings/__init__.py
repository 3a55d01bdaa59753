from .rating_engine import (
    InvalidOrder,
    PlayerRecord,
    RatingConfig,
    assign_titles,
    ensure_player,
    round_point,
    score_round,
    top_rated_player_id,
    validate_finish_order,
)

__all__ = [
    "InvalidOrder",
    "PlayerRecord",
    "RatingConfig",
    "assign_titles",
    "ensure_player",
    "round_point",
    "score_round",
    "top_rated_player_id",
    "validate_finish_order",
]
