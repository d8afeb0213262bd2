from forum.models.session_model import AuthSession


def get_by_token(session, token: str):
    return session.query(AuthSession).filter_by(token=token).first()


def delete_for_user(session, user_id: int) -> int:
    return (
        session.query(AuthSession)
        .filter_by(user_id=user_id)
        .delete(synchronize_session=False)
    )


def insert_session(session, token: str, user_id: int, expires_at):
    row = AuthSession(token=token, user_id=user_id, expires_at=expires_at)
    session.add(row)
    session.flush()
    return row


def delete_expired(session, now) -> int:
    return (
        session.query(AuthSession)
        .filter(AuthSession.expires_at <= now)
        .delete(synchronize_session=False)
    )


def count_for_user(session, user_id: int) -> int:
    return session.query(AuthSession).filter_by(user_id=user_id).count()
