from sqlalchemy import or_

from forum.models.user_model import User


def get_by_id(session, user_id: int):
    return session.get(User, user_id)


def get_by_login(session, login: str):
    """Look a user up by email or username, whichever matches."""
    return (
        session.query(User)
        .filter(or_(User.email == login, User.username == login))
        .first()
    )


def email_exists(session, email: str) -> bool:
    return session.query(User.id).filter_by(email=email).first() is not None


def username_exists(session, username: str) -> bool:
    return session.query(User.id).filter_by(username=username).first() is not None


def create_user(session, username, email, password_hash):
    user = User(
        username=username,
        email=email,
        password_hash=password_hash,
    )
    session.add(user)
    session.flush()
    return user


def count_users(session) -> int:
    return session.query(User).count()
