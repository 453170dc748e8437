"""
When cached data must be refreshed, and the store that ties the caches together.
"""
import logging
import threading
import time
from datetime import datetime

from club_analytics.cache import EntityCache
from club_analytics.grouping import partition_groups
from club_analytics.match_counts import MatchCountIndex
from club_analytics.ranking import rank_players
from club_analytics.seeding import max_seeds, valid_seed_counts
from club_analytics.settings import get_default_settings, clamp_group_size

logger = logging.getLogger(__name__)

MISSING = 'missing'
STALE = 'stale'
FRESH = 'fresh'


def assess(cache: EntityCache, max_age: float) -> str:
    if cache.data is None:
        return MISSING
    if cache.is_stale(max_age):
        return STALE
    return FRESH


def refresh(cache: EntityCache, fetch) -> bool:
    """Fetch a full snapshot into cache, discarding it if a push got there first."""
    requested_at = cache.begin_fetch()
    items = fetch()
    return cache.set_all(items, requested_at=requested_at)


class RefreshPolicy:
    """
    Decide what to do with a cache before showing its data.

    - missing: fetch now, the caller has nothing to show
    - stale: show the cached data, refresh in the background through ``defer``
    - fresh: show the cached data

    At most one background refresh per cache is queued at a time.
    """

    def __init__(self, stale_after: float = 30, defer=None):
        self.stale_after = stale_after
        self.pending = []
        self._queued = set()
        self._defer = defer or self.pending.append

    def ensure(self, cache: EntityCache, fetch):
        state = assess(cache, self.stale_after)
        if state == MISSING:
            refresh(cache, fetch)
        elif state == STALE:
            self._refresh_later(cache, fetch)
        return cache.get()

    def _refresh_later(self, cache, fetch):
        if cache.name in self._queued:
            return
        logger.debug(f"{cache.name} is {cache.age():.1f}s old, refreshing in background")
        self._queued.add(cache.name)

        def task():
            try:
                refresh(cache, fetch)
            finally:
                self._queued.discard(cache.name)

        self._defer(task)

    def run_pending(self):
        """Run queued background refreshes; a failed one leaves the cached data in place."""
        while True:
            try:
                task = self.pending.pop(0)
            except IndexError:
                return
            try:
                task()
            except Exception as e:
                logger.warning(f"Background refresh failed: {e}")


class AnalyticsStore:
    """
    Members cache, matches cache and match-count index with one lifecycle.

    ``fetch_members`` and ``fetch_matches`` return full snapshots. Push handlers
    update the caches in place; the index follows the matches cache on its own.
    Public methods hold ``lock``; callers that iterate returned maps or lists
    while other threads may mutate the store must hold it too.
    """

    def __init__(self, fetch_members, fetch_matches, settings=None,
                 clock=time.time, now=datetime.now, defer=None):
        self.settings = settings or get_default_settings()
        self.fetch_members = fetch_members
        self.fetch_matches = fetch_matches
        self.lock = threading.RLock()
        self.members = EntityCache('members', clock=clock)
        self.matches = EntityCache('matches', clock=clock)
        self.match_counts = MatchCountIndex(self.matches, now=now)
        self.policy = RefreshPolicy(self.settings.get('stale_after_seconds', 30), defer=defer)

    # Reads

    def member_list(self):
        with self.lock:
            return self.policy.ensure(self.members, self.fetch_members) or []

    def match_list(self):
        with self.lock:
            return self.policy.ensure(self.matches, self.fetch_matches) or []

    def rankings(self):
        with self.lock:
            return rank_players(self.member_list())

    def counts_for(self, window):
        with self.lock:
            self.match_list()
            return self.match_counts.get_counts(window)

    def build_groups(self, player_ids, group_size=None, strategy=None):
        selected = list(dict.fromkeys(player_ids or []))
        if not selected:
            return []
        size = clamp_group_size(group_size or self.settings.get('default_group_size', 4), self.settings)
        with self.lock:
            members = self.member_list()
            ratings = {m.id: m.rating for m in members}
            rank_map = rank_players(members)
        return partition_groups(
            selected,
            rank_map,
            ratings.get,
            size,
            strategy or self.settings.get('grouping_strategy', 'block'),
        )

    def seed_options(self, participant_count):
        minimum = self.settings.get('min_tournament_participants', 4)
        if participant_count < minimum:
            raise ValueError(f"A playoff needs at least {minimum} participants, got {participant_count}")
        return {
            'max_seeds': max_seeds(participant_count),
            'valid_seed_counts': valid_seed_counts(participant_count),
        }

    def run_pending_refreshes(self):
        with self.lock:
            self.policy.run_pending()

    # Push handlers

    def member_created(self, member):
        with self.lock:
            if not self.members.upsert(member):
                refresh(self.members, self.fetch_members)

    member_updated = member_created

    def members_imported(self):
        with self.lock:
            self.members.invalidate()
            refresh(self.members, self.fetch_members)

    def match_recorded(self, match, is_new=False):
        with self.lock:
            if not self.match_counts.record_match(match, is_new):
                refresh(self.matches, self.fetch_matches)

    def match_deleted(self, match_id, player1_id=None, player2_id=None):
        with self.lock:
            self.match_counts.remove_match(match_id, player1_id, player2_id)

    def matches_imported(self):
        with self.lock:
            self.matches.invalidate()
            refresh(self.matches, self.fetch_matches)

    def full_refresh(self):
        """Drop every cache and index entry, then refetch both collections."""
        logger.info("Full refresh requested")
        with self.lock:
            self.reset()
            refresh(self.members, self.fetch_members)
            refresh(self.matches, self.fetch_matches)

    def reset(self):
        with self.lock:
            self.members.invalidate()
            self.matches.invalidate()
            self.match_counts.clear()
