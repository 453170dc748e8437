"""
Dense 1-based ranking of players by rating.
"""
from typing import Dict, Iterable


def rank_players(players: Iterable) -> Dict[int, int]:
    """
    Map player id -> rank for every player with a rating.

    Higher rating = better rank. Equal ratings are broken by ascending id so the
    ordering is reproducible regardless of input order. Unrated players get no
    entry.
    """
    rated = [p for p in players if p.rating is not None]
    rated.sort(key=lambda p: (-p.rating, p.id))
    return {player.id: position for position, player in enumerate(rated, start=1)}
