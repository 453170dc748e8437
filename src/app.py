"""
Flask web application exposing the club analytics engine as JSON.
"""
import os
import threading
import yaml
from flask import Flask, request, jsonify
from club_analytics.models import Member, Match
from club_analytics.windows import TimeWindow
from club_analytics.freshness import AnalyticsStore
from club_analytics.settings import load_settings

app = Flask(__name__)

BASE_DIR = os.path.dirname(os.path.dirname(__file__))
DATA_DIR = os.environ.get('CLUB_ANALYTICS_DATA_DIR', os.path.join(BASE_DIR, 'data'))
SETTINGS_FILE = os.environ.get('CLUB_ANALYTICS_SETTINGS', os.path.join(DATA_DIR, 'settings.yaml'))

_store = None
_store_lock = threading.Lock()


def _load_snapshot(filename: str) -> list:
    """Load a list of records from a YAML snapshot in DATA_DIR."""
    path = os.path.join(DATA_DIR, filename)
    if not os.path.exists(path):
        return []
    with open(path, 'r', encoding='utf-8') as f:
        data = yaml.safe_load(f)
    return data or []


def load_members() -> list:
    return [Member.from_dict(row) for row in _load_snapshot('members.yaml')]


def load_matches() -> list:
    return [Match.from_dict(row) for row in _load_snapshot('matches.yaml')]


def get_store() -> AnalyticsStore:
    global _store
    with _store_lock:
        if _store is None:
            _store = AnalyticsStore(load_members, load_matches, settings=load_settings(SETTINGS_FILE))
        return _store


def reset_store():
    """Forget the current store; the next request builds a fresh one."""
    global _store
    with _store_lock:
        _store = None


@app.after_request
def run_background_refreshes(response):
    """Run refreshes queued while serving stale data once the response is sent."""
    store = _store
    if store is not None and store.policy.pending:
        response.call_on_close(store.run_pending_refreshes)
    return response


@app.errorhandler(ValueError)
def handle_value_error(e):
    return jsonify({'success': False, 'error': str(e)}), 400


@app.errorhandler(KeyError)
def handle_missing_field(e):
    return jsonify({'success': False, 'error': f'Missing field: {e.args[0]}'}), 400


def _window_from_request() -> TimeWindow:
    key = request.args.get('key')
    if key:
        return TimeWindow.from_key(key)
    return TimeWindow.create(
        request.args.get('period', 'all'),
        request.args.get('start') or None,
        request.args.get('end') or None,
    )


@app.route('/api/members')
def api_members():
    """Cached member list with each member's rank."""
    store = get_store()
    with store.lock:
        rankings = store.rankings()
        members = []
        for member in store.member_list():
            row = member.to_dict()
            row['rank'] = rankings.get(member.id)
            members.append(row)
    return jsonify({'success': True, 'members': members})


@app.route('/api/rankings')
def api_rankings():
    rankings = get_store().rankings()
    return jsonify({'success': True, 'rankings': {str(pid): rank for pid, rank in rankings.items()}})


@app.route('/api/match-counts')
def api_match_counts():
    """Matches played per player in a time window."""
    window = _window_from_request()
    store = get_store()
    with store.lock:
        counts = {str(pid): count for pid, count in store.counts_for(window).items()}
    return jsonify({'success': True, 'window': window.to_key(), 'counts': counts})


@app.route('/api/push/member', methods=['POST'])
def api_push_member():
    """Apply a member created/updated notification."""
    payload = request.get_json(silent=True) or {}
    event = payload.get('event')
    if event not in ('created', 'updated') or not payload.get('member'):
        return jsonify({'success': False, 'error': 'Expected event created|updated and a member.'}), 400
    member = Member.from_dict(payload['member'])
    store = get_store()
    if event == 'created':
        store.member_created(member)
    else:
        store.member_updated(member)
    app.logger.debug(f'Member {member.id} {event}')
    return jsonify({'success': True})


@app.route('/api/push/members-imported', methods=['POST'])
def api_push_members_imported():
    get_store().members_imported()
    app.logger.info('Members imported, member cache reloaded')
    return jsonify({'success': True})


@app.route('/api/push/match', methods=['POST'])
def api_push_match():
    """Apply a match recorded/deleted notification."""
    payload = request.get_json(silent=True) or {}
    event = payload.get('event')
    data = payload.get('match')
    if event not in ('recorded', 'deleted') or not data:
        return jsonify({'success': False, 'error': 'Expected event recorded|deleted and a match.'}), 400
    store = get_store()
    if event == 'recorded':
        store.match_recorded(Match.from_dict(data), is_new=bool(payload.get('is_new')))
    else:
        store.match_deleted(data['id'], data.get('member1Id'), data.get('member2Id'))
    app.logger.debug(f"Match {data.get('id')} {event}")
    return jsonify({'success': True})


@app.route('/api/push/matches-imported', methods=['POST'])
def api_push_matches_imported():
    get_store().matches_imported()
    return jsonify({'success': True})


@app.route('/api/refresh', methods=['POST'])
def api_refresh():
    """Drop all cached data and reload it from the snapshots."""
    store = get_store()
    with store.lock:
        store.full_refresh()
        sizes = {'members': len(store.members), 'matches': len(store.matches)}
    return jsonify({'success': True, **sizes})


@app.route('/api/groups', methods=['POST'])
def api_groups():
    """Split the selected players into tournament groups."""
    payload = request.get_json(silent=True) or {}
    player_ids = payload.get('player_ids') or []
    if not isinstance(player_ids, list):
        return jsonify({'success': False, 'error': 'player_ids must be a list.'}), 400
    groups = get_store().build_groups(player_ids, payload.get('group_size'), payload.get('strategy'))
    return jsonify({'success': True, 'groups': groups})


@app.route('/api/seeds')
def api_seeds():
    participants = request.args.get('participants', type=int)
    if participants is None:
        return jsonify({'success': False, 'error': 'participants is required.'}), 400
    options = get_store().seed_options(participants)
    return jsonify({'success': True, **options})


if __name__ == '__main__':
    app.run(debug=True, port=5000)
