from scavenger import db
from flask_login import UserMixin

USERNAME_MAX_LENGTH = 64


def clean_username(value):
    """Return the trimmed username, or None if it is not a usable name."""
    if not isinstance(value, str):
        return None
    value = value.strip()
    if not value or len(value) > USERNAME_MAX_LENGTH:
        return None
    return value


class LeaderboardEntry(db.Model):
    __tablename__ = 'leaderboard_entry'
    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(USERNAME_MAX_LENGTH), unique=True, nullable=False, index=True)
    score = db.Column(db.Integer, default=0, nullable=False)

    def to_dict(self):
        return {
            'username': self.username,
            'score': self.score,
        }


class Player(UserMixin):
    """Session user for the shared-password login. Never persisted."""

    def __init__(self, username):
        self.username = username

    def get_id(self):
        return self.username

    def to_dict(self):
        return {'username': self.username}
