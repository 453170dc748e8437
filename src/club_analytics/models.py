from datetime import date, datetime, time


def parse_timestamp(value):
    """Parse an ISO 8601 timestamp (a trailing 'Z' is accepted)."""
    if value is None:
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime.combine(value, time.min)
    else:
        text = str(value).strip()
        if text.endswith('Z'):
            text = text[:-1] + '+00:00'
        parsed = datetime.fromisoformat(text)
    # Window bounds are naive local times
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone().replace(tzinfo=None)
    return parsed


class Member:
    def __init__(self, id, first_name='', last_name='', rating=None, is_active=True):
        self.id = id
        self.first_name = first_name
        self.last_name = last_name
        self.rating = rating
        self.is_active = is_active

    @classmethod
    def from_dict(cls, data):
        return cls(
            id=data['id'],
            first_name=data.get('firstName', ''),
            last_name=data.get('lastName', ''),
            rating=data.get('rating'),
            is_active=data.get('isActive', True),
        )

    def to_dict(self):
        return {
            'id': self.id,
            'firstName': self.first_name,
            'lastName': self.last_name,
            'rating': self.rating,
            'isActive': self.is_active,
        }

    def __repr__(self):
        return f"Member(id={self.id}, name={self.first_name} {self.last_name}, rating={self.rating})"


class Match:
    def __init__(self, id, player1_id, player2_id=None, created_at=None, updated_at=None):
        self.id = id
        self.player1_id = player1_id
        self.player2_id = player2_id
        self.created_at = parse_timestamp(created_at)
        self.updated_at = parse_timestamp(updated_at)

    @property
    def effective_at(self):
        return self.updated_at or self.created_at

    def player_ids(self):
        """Ids of the players in this match, skipping an empty second slot."""
        return [pid for pid in (self.player1_id, self.player2_id) if pid is not None]

    def involves(self, player_id):
        return player_id is not None and player_id in (self.player1_id, self.player2_id)

    @classmethod
    def from_dict(cls, data):
        return cls(
            id=data['id'],
            player1_id=data['member1Id'],
            player2_id=data.get('member2Id'),
            created_at=data.get('createdAt'),
            updated_at=data.get('updatedAt'),
        )

    def to_dict(self):
        return {
            'id': self.id,
            'member1Id': self.player1_id,
            'member2Id': self.player2_id,
            'createdAt': self.created_at.isoformat() if self.created_at else None,
            'updatedAt': self.updated_at.isoformat() if self.updated_at else None,
        }

    def __repr__(self):
        return f"Match(id={self.id}, players=({self.player1_id}, {self.player2_id}), at={self.effective_at})"
