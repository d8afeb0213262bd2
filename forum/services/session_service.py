import secrets
from datetime import timedelta

from flask import current_app

from forum.clock import utcnow
from forum.db import run_in_transaction, run_query
from forum.errors import TokenGenerationError
from forum.repositories import session_repository


TOKEN_BYTES = 32
TOKEN_LENGTH = TOKEN_BYTES * 2
DEFAULT_LIFETIME = timedelta(hours=24)


def generate_token() -> str:
    try:
        return secrets.token_hex(TOKEN_BYTES)
    except (OSError, NotImplementedError) as exc:
        raise TokenGenerationError("Random source unavailable") from exc


class SessionManager:
    """Issues, validates and revokes login sessions.

    A user holds at most one session row: issuing a session deletes the
    previous one in the same transaction, so logging in elsewhere logs the
    old browser out. Expired rows are not removed on validation; they are
    simply treated as absent until the next login or ``purge_expired``.
    """

    def __init__(self, store, lifetime=DEFAULT_LIFETIME, clock=utcnow):
        self.store = store
        self.lifetime = lifetime
        self.clock = clock

    def issue(self, session, user_id: int):
        """Replace the user's session inside the caller's transaction."""
        token = generate_token()
        expires_at = self.clock() + self.lifetime

        session_repository.delete_for_user(session, user_id)
        session_repository.insert_session(session, token, user_id, expires_at)
        return token, expires_at

    def create_session(self, user_id: int):
        token, expires_at = run_in_transaction(
            self.store,
            lambda session: self.issue(session, user_id),
        )
        current_app.logger.debug("Issued session for user %s", user_id)
        return token, expires_at

    def validate(self, token, now=None):
        if not token or len(token) != TOKEN_LENGTH:
            return None, False

        row = run_query(
            self.store,
            lambda session: session_repository.get_by_token(session, token),
        )
        if row is None:
            return None, False

        if not row.is_live(now or self.clock()):
            return None, False

        return row.user_id, True

    def revoke(self, user_id: int) -> None:
        deleted = run_in_transaction(
            self.store,
            lambda session: session_repository.delete_for_user(session, user_id),
        )
        current_app.logger.debug("Revoked %s session(s) for user %s", deleted, user_id)

    def purge_expired(self, now=None) -> int:
        now = now or self.clock()
        return run_in_transaction(
            self.store,
            lambda session: session_repository.delete_expired(session, now),
        )
