import logging

from catalog.config import MIN_PASSWORD_LENGTH, MIN_USERNAME_LENGTH, USERS_FILE
from catalog.errors import AuthenticationError, DuplicateUserError, ValidationError
from catalog.storage import RecordStore

logger = logging.getLogger(__name__)


def _store():
    return RecordStore(USERS_FILE, default=list)


def _validate(username: str, password: str):
    if not username or not password:
        raise ValidationError("Username and password are required")
    if len(username) < MIN_USERNAME_LENGTH:
        raise ValidationError(f"Username must be at least {MIN_USERNAME_LENGTH} characters")
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")


def register_user(username: str, password: str):
    _validate(username, password)

    def add(users):
        if any(u.get("username") == username for u in users):
            raise DuplicateUserError("Username already exists")
        users.append({"username": username, "password": password})

    _store().update(add)
    logger.info("Registered user %s", username)


def login_user(username: str, password: str) -> str:
    """Return the username of the first credential matching both fields exactly."""
    if not username or not password:
        raise AuthenticationError("Invalid username or password")

    users = _store().load()
    for user in users:
        if user.get("username") == username and user.get("password") == password:
            return user["username"]
    # Same error for unknown user and wrong password
    raise AuthenticationError("Invalid username or password")
