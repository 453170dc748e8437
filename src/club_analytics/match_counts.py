"""
Matches-played-per-player index, kept consistent with a matches cache.

Each cached window maps player id -> number of matches that player took part
in. Windows are computed lazily on first request (one full scan) and then
maintained incrementally: a mutation of the matches cache only recounts the
players touched by the mutated match, in every cached window.
"""
import logging
from datetime import datetime
from typing import Callable, Dict, Iterable, List

from club_analytics.cache import EntityCache, REPLACED, UPSERTED, REMOVED, INVALIDATED
from club_analytics.windows import TimeWindow

logger = logging.getLogger(__name__)


def _in_range(match, bounds) -> bool:
    start, end = bounds
    if start is None and end is None:
        return True
    when = match.effective_at
    return when is not None and start <= when <= end


def count_matches(matches: Iterable, bounds) -> Dict[int, int]:
    """Full scan: count both ends of every match whose date falls in bounds."""
    counts = {}
    for match in matches:
        if not _in_range(match, bounds):
            continue
        for player_id in match.player_ids():
            counts[player_id] = counts.get(player_id, 0) + 1
    return counts


class MatchCountIndex:
    def __init__(self, matches: EntityCache, now: Callable[[], datetime] = datetime.now):
        self.matches = matches
        self._now = now
        self._entries: Dict[TimeWindow, Dict[int, int]] = {}
        matches.subscribe(self._on_matches_changed)

    def windows(self) -> List[TimeWindow]:
        return list(self._entries)

    def clear(self):
        """Drop every cached window (explicit full refresh)."""
        logger.debug(f"Clearing {len(self._entries)} cached match-count windows")
        self._entries.clear()

    def record_match(self, match, is_new: bool = False) -> bool:
        """Upsert a match into the matches cache; counts follow synchronously.

        ``is_new`` only documents the caller's intent: the cache matches on id
        either way, so an "update" for an unknown id is appended.
        """
        logger.debug(f"Recording {'new' if is_new else 'updated'} match {match.id}")
        return self.matches.upsert(match)

    def remove_match(self, match_id, player1_id=None, player2_id=None):
        """Remove a match and recount its players from the remaining matches."""
        removed = self.matches.remove(match_id)
        extra = [pid for pid in (player1_id, player2_id)
                 if pid is not None and not (removed and removed.involves(pid))]
        if extra:
            self._recount_players(extra)
        return removed

    def get_counts(self, window) -> Dict[int, int]:
        """Counts for ``window`` (a TimeWindow or its serialized key).

        A cache hit returns the stored map itself; a miss scans the matches
        cache once and stores the result.
        """
        if isinstance(window, str):
            try:
                window = TimeWindow.from_key(window)
            except ValueError as e:
                logger.warning(f"Ignoring malformed time window key: {e}")
                return {}

        cached = self._entries.get(window)
        if cached is not None:
            return cached

        bounds = window.resolve(self._now())
        if bounds is None:
            return {}
        matches = self.matches.get()
        if matches is None:
            return {}

        counts = count_matches(matches, bounds)
        self._entries[window] = counts
        logger.debug(f"Computed match counts for window {window.to_key()}: {len(counts)} players")
        return counts

    def _on_matches_changed(self, event, before, after):
        if event == INVALIDATED:
            self.clear()
        elif event == REPLACED:
            self._recompute_all()
        elif event in (UPSERTED, REMOVED):
            player_ids = []
            for match in (before, after):
                if match is not None:
                    player_ids.extend(match.player_ids())
            self._recount_players(player_ids)

    def _recompute_all(self):
        matches = self.matches.get() or []
        now = self._now()
        for window, counts in self._entries.items():
            bounds = window.resolve(now)
            if bounds is None:
                continue
            counts.clear()
            counts.update(count_matches(matches, bounds))

    def _recount_players(self, player_ids):
        affected = list(dict.fromkeys(player_ids))
        if not affected or not self._entries:
            return
        matches = self.matches.get() or []
        now = self._now()
        for window, counts in self._entries.items():
            bounds = window.resolve(now)
            if bounds is None:
                logger.warning(f"Skipping unresolvable time window {window.to_key()}")
                continue
            for player_id in affected:
                if bounds == (None, None):
                    count = sum(1 for m in matches if m.involves(player_id))
                else:
                    count = sum(1 for m in matches if m.involves(player_id) and _in_range(m, bounds))
                if count:
                    counts[player_id] = count
                else:
                    counts.pop(player_id, None)
