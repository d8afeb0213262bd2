import re

from flask import current_app
from sqlalchemy.exc import IntegrityError

from forum.db import run_in_transaction, run_query
from forum.errors import AuthError, ConflictError, StorageError, ValidationError
from forum.repositories import user_repository
from forum.services.credential_service import (
    burn_verification,
    hash_password,
    verify_password,
)


USERNAME_RE = re.compile(r"^[A-Za-z0-9_-]+$")
EMAIL_RE = re.compile(
    r"^[A-Za-z0-9](?:[A-Za-z0-9._%+\-]{0,63}[A-Za-z0-9])?"
    r"@"
    r"[A-Za-z0-9](?:[A-Za-z0-9\-]{0,61}[A-Za-z0-9])?"
    r"(?:\.[A-Za-z0-9](?:[A-Za-z0-9\-]{0,61}[A-Za-z0-9])?)+$"
)

INVALID_CREDENTIALS = "Invalid email or password"


def _clean(value):
    if not isinstance(value, str):
        return ""
    return value.strip()


def validate_signup(username, email, password, password_min_length=8):
    if not username or not email or not password:
        raise ValidationError("All fields are required")

    if not EMAIL_RE.match(email):
        raise ValidationError("Invalid email", status_code=422)

    if not USERNAME_RE.match(username):
        raise ValidationError("Invalid username", status_code=422)

    if len(password) < password_min_length:
        raise ValidationError(
            f"Password must be >= {password_min_length} chars",
            status_code=422,
        )


class AuthService:
    def __init__(self, store, sessions, password_min_length=8):
        self.store = store
        self.sessions = sessions
        self.password_min_length = password_min_length

    def _ensure_available(self, email, username):
        def check(session):
            if user_repository.email_exists(session, email):
                raise ConflictError("Email already taken")
            if user_repository.username_exists(session, username):
                raise ConflictError("Username already taken")

        run_query(self.store, check)

    def signup(self, username, email, password):
        """Create the user and its first session in one transaction.

        Returns ``(user_id, token, expires_at)``.
        """
        username = _clean(username)
        email = _clean(email)
        password = password if isinstance(password, str) else ""

        validate_signup(username, email, password, self.password_min_length)
        self._ensure_available(email, username)

        password_hash = hash_password(password)

        def create(session):
            user = user_repository.create_user(
                session,
                username=username,
                email=email,
                password_hash=password_hash,
            )
            token, expires_at = self.sessions.issue(session, user.id)
            return user.id, token, expires_at

        try:
            user_id, token, expires_at = run_in_transaction(self.store, create)
        except StorageError as exc:
            # lost a race with a concurrent signup for the same email/username
            if isinstance(exc.__cause__, IntegrityError):
                self._ensure_available(email, username)
            raise

        current_app.logger.info("Registered user %s (id=%s)", username, user_id)
        return user_id, token, expires_at

    def login(self, login, password):
        """Check credentials and replace the user's session.

        Unknown users and wrong passwords fail with the same ``AuthError``.
        Returns ``(user_id, token, expires_at)``.
        """
        login = _clean(login)
        if not login or not isinstance(password, str) or not password:
            raise ValidationError("Email and password required")

        user = run_query(
            self.store,
            lambda session: user_repository.get_by_login(session, login),
        )
        if user is None:
            burn_verification(password)
            current_app.logger.info("Failed login attempt")
            raise AuthError(INVALID_CREDENTIALS)

        if not verify_password(user.password_hash, password):
            current_app.logger.info("Failed login attempt")
            raise AuthError(INVALID_CREDENTIALS)

        token, expires_at = self.sessions.create_session(user.id)
        return user.id, token, expires_at

    def logout(self, user_id):
        self.sessions.revoke(user_id)

    def get_user(self, user_id):
        return run_query(
            self.store,
            lambda session: user_repository.get_by_id(session, user_id),
        )
