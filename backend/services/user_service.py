"""User management and authentication."""
import logging
from pydantic import ValidationError as PydanticValidationError
from werkzeug.security import generate_password_hash, check_password_hash
from shared.enums import UserRole
from shared.models import now_iso
from shared.schemas import Permissions, UserCreate, UserUpdate
from shared.validation import Validator, ValidationError, format_pydantic_errors
from ..repositories.users import UserRepository, SessionRepository

logger = logging.getLogger(__name__)


class UserService:
    """Creates, updates and authenticates users.

    Usernames are unique; passwords are stored only as werkzeug hashes under
    the document's ``passwordHash`` field.
    """

    def __init__(self, store, settings):
        self.users = UserRepository(store)
        self.sessions = SessionRepository(store)
        self.settings = settings

    def _validate_credentials(self, username=None, password=None):
        if username is not None:
            username = Validator.validate_username(username, self.settings.min_username_length)
        if password is not None:
            password = Validator.validate_password(password, self.settings.min_password_length)
        return username, password

    def list_users(self):
        return self.users.list(order_by='createdAt')

    def get_user(self, user_id):
        return self.users.get(user_id)

    def create_user(self, data):
        """Create an admin or staff user from request data."""
        try:
            payload = UserCreate.model_validate(data)
        except PydanticValidationError as e:
            raise ValidationError(format_pydantic_errors(e))

        username, password = self._validate_credentials(payload.username, payload.password)
        if self.users.username_taken(username):
            raise ValidationError("Username already taken")

        document = payload.to_document(exclude={'password'})
        document.update({
            'username': username,
            'passwordHash': generate_password_hash(password),
            'isActive': True,
        })
        user = self.users.create(document)
        logger.info(f"Created user {user.id} ({user.username}, role={user.role})")
        return user

    def update_user(self, user_id, data):
        """Apply a partial update. Returns None if the user does not exist."""
        existing = self.users.get(user_id)
        if existing is None:
            return None
        try:
            payload = UserUpdate.model_validate(data)
        except PydanticValidationError as e:
            raise ValidationError(format_pydantic_errors(e))

        changes = payload.model_dump(mode='json', by_alias=True, exclude_unset=True,
                                     exclude_none=True, exclude={'password'})
        if payload.username is not None:
            username, _ = self._validate_credentials(username=payload.username)
            if self.users.username_taken(username, exclude_id=user_id):
                raise ValidationError("Username already taken")
            changes['username'] = username
        if payload.password:
            _, password = self._validate_credentials(password=payload.password)
            changes['passwordHash'] = generate_password_hash(password)
        if existing.role == UserRole.SUPER_ADMIN.value:
            # The super admin keeps its role and stays active
            changes.pop('role', None)
            if changes.get('isActive') is False:
                raise ValidationError("Super admin accounts cannot be deactivated")

        user = self.users.update(user_id, changes)
        if changes.get('isActive') is False:
            self.sessions.delete_for_user(user_id)
        logger.info(f"Updated user {user_id}: {sorted(k for k in changes if k != 'passwordHash')}")
        return user

    def delete_user(self, user_id):
        """Delete a user and revoke their sessions. Super admins cannot be deleted."""
        existing = self.users.get(user_id)
        if existing is None:
            return False
        if existing.role == UserRole.SUPER_ADMIN.value:
            raise ValidationError("Super admin accounts cannot be deleted")
        self.sessions.delete_for_user(user_id)
        return self.users.delete(user_id)

    def toggle_user_status(self, user_id):
        """Flip isActive. Deactivated users lose their sessions."""
        existing = self.users.get(user_id)
        if existing is None:
            return None
        if existing.role == UserRole.SUPER_ADMIN.value and existing.is_active:
            raise ValidationError("Super admin accounts cannot be deactivated")
        user = self.users.update(user_id, {'isActive': not existing.is_active})
        if not user.is_active:
            self.sessions.delete_for_user(user_id)
        logger.info(f"User {user_id} is now {'active' if user.is_active else 'inactive'}")
        return user

    def authenticate(self, username, password):
        """Return the active user matching the credentials, or None."""
        if not username or not password:
            return None
        user = self.users.find_by_username(username.strip())
        if user is None or not user.is_active:
            return None
        password_hash = self.users.get_password_hash(user.id)
        if not password_hash or not check_password_hash(password_hash, password):
            return None
        return user

    def login(self, username, password):
        """Return ``(token, user)`` for valid credentials, or None."""
        user = self.authenticate(username, password)
        if user is None:
            logger.warning(f"Failed login for username '{username}'")
            return None
        token = self.sessions.create(user.id)
        logger.info(f"User {user.id} logged in")
        return token, user

    def logout(self, token):
        return self.sessions.delete(token)

    def user_for_token(self, token):
        """Resolve a bearer token to an active user, or None."""
        if not token:
            return None
        user_id = self.sessions.get_user_id(token)
        if not user_id:
            return None
        user = self.users.get(user_id)
        if user is None or not user.is_active:
            return None
        return user

    def ensure_super_admin(self, password, username=None):
        """Create the super admin account if no user holds that username.

        Returns ``(user, created)``.
        """
        username = username or self.settings.default_super_admin_username
        existing = self.users.find_by_username(username)
        if existing is not None:
            return existing, False
        _, password = self._validate_credentials(password=password)
        timestamp = now_iso()
        user = self.users.create({
            'username': username,
            'displayName': 'Super Admin',
            'role': UserRole.SUPER_ADMIN.value,
            'permissions': Permissions().to_document(),
            'passwordHash': generate_password_hash(password),
            'isActive': True,
            'createdAt': timestamp,
            'updatedAt': timestamp,
        })
        logger.info(f"Created super admin '{username}'")
        return user, True
