from sqlalchemy import case, delete, func, select, update
from sqlalchemy.dialects import postgresql, sqlite

from forum.models.vote_model import DISLIKE, LIKE, Vote


_DIALECT_INSERTS = {
    "sqlite": sqlite.insert,
    "postgresql": postgresql.insert,
}


def _target_filter(post_id, comment_id):
    if post_id is not None:
        return Vote.post_id == post_id
    return Vote.comment_id == comment_id


def _insert_for(session):
    dialect = session.get_bind().dialect.name
    try:
        return _DIALECT_INSERTS[dialect]
    except KeyError:
        raise RuntimeError(f"Unsupported store dialect: {dialect}") from None


def insert_if_absent(session, user_id, post_id, comment_id, value) -> bool:
    """Insert the vote unless the user already has one on the target.

    Returns True when a row was inserted.
    """
    insert = _insert_for(session)
    stmt = (
        insert(Vote)
        .values(
            user_id=user_id,
            post_id=post_id,
            comment_id=comment_id,
            value=value,
        )
        .on_conflict_do_nothing()
    )
    return session.execute(stmt).rowcount == 1


def delete_if_value(session, user_id, post_id, comment_id, value) -> bool:
    stmt = (
        delete(Vote)
        .where(
            Vote.user_id == user_id,
            _target_filter(post_id, comment_id),
            Vote.value == value,
        )
        .execution_options(synchronize_session=False)
    )
    return session.execute(stmt).rowcount == 1


def set_value(session, user_id, post_id, comment_id, value) -> bool:
    stmt = (
        update(Vote)
        .where(
            Vote.user_id == user_id,
            _target_filter(post_id, comment_id),
            Vote.value != value,
        )
        .values(value=value)
        .execution_options(synchronize_session=False)
    )
    return session.execute(stmt).rowcount == 1


def get_value(session, user_id, post_id=None, comment_id=None):
    stmt = select(Vote.value).where(
        Vote.user_id == user_id,
        _target_filter(post_id, comment_id),
    )
    return session.execute(stmt).scalar_one_or_none()


def count_by_value(session, post_id=None, comment_id=None):
    rows = session.execute(
        select(Vote.value, func.count(Vote.id))
        .where(_target_filter(post_id, comment_id))
        .group_by(Vote.value)
    ).all()

    counts = {value: count for value, count in rows}
    return counts.get(LIKE, 0), counts.get(DISLIKE, 0)


def _counts_grouped_by(session, column, target_ids):
    if not target_ids:
        return {}

    likes = func.sum(case((Vote.value == LIKE, 1), else_=0))
    dislikes = func.sum(case((Vote.value == DISLIKE, 1), else_=0))
    rows = session.execute(
        select(column, likes, dislikes)
        .where(column.in_(target_ids))
        .group_by(column)
    ).all()
    return {target_id: (int(l or 0), int(d or 0)) for target_id, l, d in rows}


def counts_for_posts(session, post_ids):
    return _counts_grouped_by(session, Vote.post_id, post_ids)


def counts_for_comments(session, comment_ids):
    return _counts_grouped_by(session, Vote.comment_id, comment_ids)


def values_for_user(session, user_id, post_ids=(), comment_ids=()):
    """Map ("post", id) / ("comment", id) to the user's vote value."""
    result = {}
    if post_ids:
        rows = session.execute(
            select(Vote.post_id, Vote.value).where(
                Vote.user_id == user_id, Vote.post_id.in_(post_ids)
            )
        ).all()
        result.update({("post", target_id): value for target_id, value in rows})
    if comment_ids:
        rows = session.execute(
            select(Vote.comment_id, Vote.value).where(
                Vote.user_id == user_id, Vote.comment_id.in_(comment_ids)
            )
        ).all()
        result.update({("comment", target_id): value for target_id, value in rows})
    return result
