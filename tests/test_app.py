"""
Unit tests for the Flask JSON surface.
"""
import pytest
import sys
import os
import yaml

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

import app as app_module
from app import load_members, load_matches, get_store


class TestSnapshots:
    """Tests for loading snapshot files."""

    def test_load_members(self, data_dir):
        """Test members are read from members.yaml."""
        members = load_members()
        assert [m.id for m in members] == [1, 2, 3, 4, 5]

    def test_load_matches(self, data_dir):
        """Test matches are read from matches.yaml."""
        matches = load_matches()
        assert [(m.player1_id, m.player2_id) for m in matches] == [(1, 2), (2, 3), (1, 3)]

    def test_missing_snapshot_is_empty(self, data_dir):
        """Test a missing snapshot file loads as an empty list."""
        os.remove(data_dir / 'matches.yaml')
        assert load_matches() == []

    def test_store_reads_settings_file(self, data_dir):
        """Test the store picks up the settings file."""
        (data_dir / 'settings.yaml').write_text(yaml.dump({'default_group_size': 5}))
        app_module.reset_store()
        assert get_store().settings['default_group_size'] == 5


class TestReadEndpoints:
    """Tests for the read-only endpoints."""

    def test_members_include_rank(self, client):
        """Test each member row carries its rank."""
        response = client.get('/api/members')
        assert response.status_code == 200
        ranks = {m['id']: m['rank'] for m in response.get_json()['members']}
        assert ranks == {1: 1, 2: 2, 3: 3, 4: None, 5: 4}

    def test_rankings(self, client):
        """Test the rankings endpoint skips unrated members."""
        data = client.get('/api/rankings').get_json()
        assert data['rankings'] == {'1': 1, '2': 2, '3': 3, '5': 4}

    def test_match_counts_all(self, client):
        """Test all-time counts over the snapshot."""
        data = client.get('/api/match-counts?period=all').get_json()
        assert data['window'] == 'all__'
        assert data['counts'] == {'1': 2, '2': 2, '3': 2}

    def test_match_counts_by_key(self, client):
        """Test a window can be given as a serialized key."""
        data = client.get('/api/match-counts?key=custom_2000-01-01_2000-01-31').get_json()
        assert data['counts'] == {}

    def test_match_counts_custom_missing_end(self, client):
        """Test a custom window without an end returns no counts."""
        data = client.get('/api/match-counts?period=custom&start=2026-01-01').get_json()
        assert data['success'] is True
        assert data['counts'] == {}

    def test_match_counts_bad_period(self, client):
        """Test an unknown period is rejected."""
        response = client.get('/api/match-counts?period=fortnight')
        assert response.status_code == 400
        assert response.get_json()['success'] is False

    def test_seeds(self, client):
        """Test seed options for a 16-player bracket."""
        data = client.get('/api/seeds?participants=16').get_json()
        assert data['max_seeds'] == 4
        assert data['valid_seed_counts'] == [0, 2, 4]

    def test_seeds_requires_participants(self, client):
        """Test the participant count is required."""
        assert client.get('/api/seeds').status_code == 400

    def test_seeds_below_minimum(self, client):
        """Test counts below the tournament minimum are rejected."""
        assert client.get('/api/seeds?participants=2').status_code == 400


class TestPushEndpoints:
    """Tests for push notifications."""

    def test_match_recorded_updates_counts(self, client):
        """Test a recorded match shows up in the counts."""
        client.get('/api/match-counts?period=all')
        response = client.post('/api/push/match', json={
            'event': 'recorded',
            'is_new': True,
            'match': {'id': 4, 'member1Id': 1, 'member2Id': 4, 'createdAt': '2026-03-15T10:00:00'},
        })
        assert response.status_code == 200
        counts = client.get('/api/match-counts?period=all').get_json()['counts']
        assert counts == {'1': 3, '2': 2, '3': 2, '4': 1}

    def test_match_deleted_updates_counts(self, client):
        """Test a deleted match drops out of the counts."""
        client.get('/api/match-counts?period=all')
        client.post('/api/push/match', json={
            'event': 'deleted',
            'match': {'id': 1, 'member1Id': 1, 'member2Id': 2},
        })
        counts = client.get('/api/match-counts?period=all').get_json()['counts']
        assert counts == {'1': 1, '2': 1, '3': 2}

    def test_match_push_validation(self, client):
        """Test an unknown match event is rejected."""
        assert client.post('/api/push/match', json={'event': 'played'}).status_code == 400

    def test_match_push_missing_field(self, client):
        """Test a match without players is rejected with the field name."""
        response = client.post('/api/push/match', json={'event': 'recorded', 'match': {'id': 4}})
        assert response.status_code == 400
        assert 'member1Id' in response.get_json()['error']

    def test_member_updated_changes_rank(self, client):
        """Test a rating update moves the member in the rankings."""
        client.get('/api/members')
        client.post('/api/push/member', json={
            'event': 'updated',
            'member': {'id': 4, 'firstName': 'Dee', 'lastName': 'Park', 'rating': 2500},
        })
        assert client.get('/api/rankings').get_json()['rankings']['4'] == 1

    def test_member_push_validation(self, client):
        """Test a member event without a member is rejected."""
        assert client.post('/api/push/member', json={'event': 'created'}).status_code == 400

    def test_members_imported_reloads_snapshot(self, client, data_dir):
        """Test a bulk import reloads members from disk."""
        client.get('/api/members')
        rows = yaml.safe_load((data_dir / 'members.yaml').read_text())
        rows.append({'id': 6, 'firstName': 'Fay', 'lastName': 'Orr', 'rating': 3000})
        (data_dir / 'members.yaml').write_text(yaml.dump(rows))
        client.post('/api/push/members-imported')
        assert client.get('/api/rankings').get_json()['rankings']['6'] == 1

    def test_matches_imported(self, client, data_dir):
        """Test a bulk match import reloads matches from disk."""
        client.get('/api/match-counts?period=all')
        (data_dir / 'matches.yaml').write_text(yaml.dump([]))
        client.post('/api/push/matches-imported')
        assert client.get('/api/match-counts?period=all').get_json()['counts'] == {}

    def test_refresh_drops_windows(self, client):
        """Test a full refresh reloads data and forgets every window."""
        client.get('/api/match-counts?period=all')
        client.get('/api/match-counts?period=week')
        data = client.post('/api/refresh').get_json()
        assert data == {'success': True, 'members': 5, 'matches': 3}
        assert get_store().match_counts.windows() == []


class TestGroupsEndpoint:
    """Tests for /api/groups."""

    def test_groups_by_rank(self, client):
        """Test groups are filled in rank order."""
        response = client.post('/api/groups', json={'player_ids': [5, 4, 3, 2, 1], 'group_size': 3})
        assert response.get_json()['groups'] == [[1, 2, 3], [5, 4]]

    def test_groups_default_size(self, client):
        """Test the configured default size is used."""
        groups = client.post('/api/groups', json={'player_ids': [1, 2, 3, 4, 5]}).get_json()['groups']
        assert [len(g) for g in groups] == [3, 2]

    def test_groups_ignore_repeated_ids(self, client):
        """Test a player listed twice appears in one group only."""
        response = client.post('/api/groups', json={'player_ids': [5, 4, 3, 3, 2, 1, 5], 'group_size': 3})
        assert response.get_json()['groups'] == [[1, 2, 3], [5, 4]]

    def test_groups_empty_selection(self, client):
        """Test an empty selection gives no groups."""
        assert client.post('/api/groups', json={'player_ids': []}).get_json()['groups'] == []

    def test_groups_bad_payload(self, client):
        """Test player_ids must be a list."""
        assert client.post('/api/groups', json={'player_ids': 'all'}).status_code == 400

    def test_groups_unknown_strategy(self, client):
        """Test an unknown grouping strategy is rejected."""
        response = client.post('/api/groups', json={'player_ids': [1, 2, 3], 'strategy': 'coin'})
        assert response.status_code == 400
