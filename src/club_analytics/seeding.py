"""
Seed-count policy for playoff brackets.
"""
from typing import List


def calculate_bracket_size(num_players: int) -> int:
    """Calculate the bracket size (next power of 2)."""
    if num_players <= 0:
        return 0
    return 1 << (num_players - 1).bit_length()


def max_seeds(participant_count: int) -> int:
    """
    Maximum number of seeded bracket slots for participant_count players.

    A quarter of the bracket size, never fewer than 2.
    """
    if participant_count < 1:
        raise ValueError(f"Participant count must be positive, got {participant_count}")
    quarter = calculate_bracket_size(participant_count) // 4
    return max(2, quarter)


def valid_seed_counts(participant_count: int) -> List[int]:
    """Seed counts a user may choose: 0 (random) and each power of 2 up to the cap."""
    cap = max_seeds(participant_count)
    counts = [0]
    value = 2
    while value <= cap:
        counts.append(value)
        value *= 2
    return counts
