"""Repositories for users and login sessions."""
from shared.enums import Collection
from shared.models import now_iso
from shared.schemas import User
from shared.utils import generate_token
from .base import DocumentRepository


class UserRepository(DocumentRepository):
    collection = Collection.USERS.value
    model = User

    def find_by_username(self, username):
        """Return the user with this username, or None."""
        matches = self._parse_many(self.store.find_by(self.collection, 'username', username))
        return matches[0] if matches else None

    def username_taken(self, username, exclude_id=None):
        return any(user.id != exclude_id
                   for user in self._parse_many(self.store.find_by(self.collection, 'username', username)))

    def get_password_hash(self, user_id):
        document = self.store.get(self.collection, user_id)
        return document.get('passwordHash') if document else None


class SessionRepository:
    """Bearer tokens issued at login, keyed by the token itself."""

    collection = Collection.SESSIONS.value

    def __init__(self, store):
        self.store = store

    def create(self, user_id):
        """Issue a new token for the user."""
        token = generate_token()
        self.store.set(self.collection, token, {'userId': user_id, 'createdAt': now_iso()})
        return token

    def get_user_id(self, token):
        document = self.store.get(self.collection, token)
        return document.get('userId') if document else None

    def delete(self, token):
        return self.store.delete(self.collection, token)

    def delete_for_user(self, user_id):
        """Revoke every token of a user. Returns the number revoked."""
        sessions = self.store.find_by(self.collection, 'userId', user_id)
        for session in sessions:
            self.store.delete(self.collection, session['id'])
        return len(sessions)
