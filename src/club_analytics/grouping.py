"""
Splitting a player selection into round-robin groups.
"""
import math
from typing import Callable, Dict, List, Optional

GROUPING_STRATEGIES = ('block', 'snake')


def _check_size(desired_size: int):
    if desired_size is None or desired_size < 1:
        raise ValueError(f"Group size must be a positive integer, got {desired_size!r}")


def group_capacities(num_players: int, desired_size: int) -> List[int]:
    """
    Sizes of the groups needed for num_players at roughly desired_size each.

    Uses ceil(n / size) groups; the first (n mod groups) groups get one extra
    player so no two groups differ by more than one.
    """
    _check_size(desired_size)
    if num_players <= 0:
        return []
    num_groups = math.ceil(num_players / desired_size)
    base, remainder = divmod(num_players, num_groups)
    return [base + 1 if i < remainder else base for i in range(num_groups)]


def order_by_rank(selected_ids, rank_map: Dict[int, int],
                  rating_of: Callable[[int], Optional[float]]) -> List[int]:
    """Ranked players first (rank ascending), then unranked by rating descending.

    A missing rating counts as 0.
    """
    def sort_key(player_id):
        rank = rank_map.get(player_id)
        rating = rating_of(player_id) or 0
        return (rank is None, rank if rank is not None else 0, -rating)

    return sorted(selected_ids, key=sort_key)


def partition(selected_ids, rank_map: Dict[int, int],
              rating_of: Callable[[int], Optional[float]], desired_size: int) -> List[List[int]]:
    """
    Block split: group 1 takes the top-ranked block, group 2 the next, etc.

    The caller clamps desired_size to the allowed range first.
    """
    ordered = order_by_rank(selected_ids, rank_map, rating_of)
    groups = []
    position = 0
    for capacity in group_capacities(len(ordered), desired_size):
        groups.append(ordered[position:position + capacity])
        position += capacity
    return groups


def snake_draft_groups(selected_ids, rating_of: Callable[[int], Optional[float]],
                       desired_size: int) -> List[List[int]]:
    """
    Serpentine distribution by rating across ceil(n / size) groups.

    Round 1 fills groups left to right, round 2 right to left, and so on, so
    each group gets a mix of strong and weak players.
    """
    _check_size(desired_size)
    ordered = sorted(selected_ids, key=lambda pid: -(rating_of(pid) or 0))
    if not ordered:
        return []
    num_groups = math.ceil(len(ordered) / desired_size)
    groups = [[] for _ in range(num_groups)]
    for index, player_id in enumerate(ordered):
        round_number, offset = divmod(index, num_groups)
        group_index = offset if round_number % 2 == 0 else num_groups - 1 - offset
        groups[group_index].append(player_id)
    return groups


def partition_groups(selected_ids, rank_map, rating_of, desired_size, strategy='block'):
    if strategy not in GROUPING_STRATEGIES:
        raise ValueError(f"Unknown grouping strategy: {strategy!r}")
    if strategy == 'snake':
        return snake_draft_groups(selected_ids, rating_of, desired_size)
    return partition(selected_ids, rank_map, rating_of, desired_size)
