from enum import Enum

from flask import current_app

from forum.db import run_in_transaction, run_query
from forum.errors import NotFoundError, StorageError, ValidationError
from forum.models.vote_model import DISLIKE, LIKE
from forum.repositories import comment_repository, post_repository, vote_repository


POST = "post"
COMMENT = "comment"
TARGET_KINDS = (POST, COMMENT)

POLARITIES = {
    "like": LIKE,
    "dislike": DISLIKE,
    "1": LIKE,
    "+1": LIKE,
    "-1": DISLIKE,
}


class VoteState(str, Enum):
    NONE = "none"
    LIKED = "liked"
    DISLIKED = "disliked"


def state_for_value(value):
    if value == LIKE:
        return VoteState.LIKED
    if value == DISLIKE:
        return VoteState.DISLIKED
    return VoteState.NONE


def parse_polarity(polarity) -> int:
    if polarity in (LIKE, DISLIKE) and not isinstance(polarity, bool):
        return polarity
    if isinstance(polarity, str):
        value = POLARITIES.get(polarity.strip().lower())
        if value is not None:
            return value
    raise ValidationError("Invalid vote polarity")


def resolve_target(post_id=None, comment_id=None):
    """Turn optional post/comment ids into ``(kind, id)``; exactly one is allowed."""
    if post_id is not None and comment_id is not None:
        raise ValidationError("Vote must target either a post or a comment, not both")
    if post_id is not None:
        return POST, post_id
    if comment_id is not None:
        return COMMENT, comment_id
    raise ValidationError("Vote target is required")


def _check_target(target_kind, target_id):
    if target_kind not in TARGET_KINDS:
        raise ValidationError("Invalid target type")
    if isinstance(target_id, bool) or not isinstance(target_id, int) or target_id <= 0:
        raise ValidationError("Invalid target id")


def _split_target(target_kind, target_id):
    if target_kind == POST:
        return target_id, None
    return None, target_id


class VoteService:
    """Like/dislike toggling on posts and comments.

    Per (user, target) the state moves between none, liked and disliked.
    Submitting the current polarity removes the vote, submitting the other
    polarity flips it in place, and the first submission inserts it.

    The transition runs as one transaction that opens with a conditional
    insert. That insert either creates the row or hits the per-target
    uniqueness index, and in both cases takes the store's write lock, so the
    following delete/update cannot interleave with another toggle.
    """

    def __init__(self, store):
        self.store = store

    def _target_exists(self, session, target_kind, target_id) -> bool:
        if target_kind == POST:
            return post_repository.exists(session, target_id)
        return comment_repository.exists(session, target_id)

    def toggle(self, user_id, target_kind, target_id, polarity) -> VoteState:
        _check_target(target_kind, target_id)
        value = parse_polarity(polarity)
        post_id, comment_id = _split_target(target_kind, target_id)

        def apply(session):
            if not self._target_exists(session, target_kind, target_id):
                raise NotFoundError(f"{target_kind.capitalize()} not found")

            if vote_repository.insert_if_absent(session, user_id, post_id, comment_id, value):
                return state_for_value(value)

            if vote_repository.delete_if_value(session, user_id, post_id, comment_id, value):
                return VoteState.NONE

            if vote_repository.set_value(session, user_id, post_id, comment_id, value):
                return state_for_value(value)

            raise StorageError("Vote changed during toggle")

        state = run_in_transaction(self.store, apply)
        current_app.logger.debug(
            "User %s vote on %s %s is now %s",
            user_id,
            target_kind,
            target_id,
            state.value,
        )
        return state

    def counts(self, target_kind, target_id):
        _check_target(target_kind, target_id)
        post_id, comment_id = _split_target(target_kind, target_id)
        likes, dislikes = run_query(
            self.store,
            lambda session: vote_repository.count_by_value(
                session, post_id=post_id, comment_id=comment_id
            ),
        )
        return {"likes": likes, "dislikes": dislikes}

    def state_of(self, user_id, target_kind, target_id) -> VoteState:
        _check_target(target_kind, target_id)
        post_id, comment_id = _split_target(target_kind, target_id)
        value = run_query(
            self.store,
            lambda session: vote_repository.get_value(
                session, user_id, post_id=post_id, comment_id=comment_id
            ),
        )
        return state_for_value(value)

    def toggle_with_counts(self, user_id, target_kind, target_id, polarity):
        state = self.toggle(user_id, target_kind, target_id, polarity)
        result = {
            "target_type": target_kind,
            "target_id": target_id,
            "state": state.value,
        }
        result.update(self.counts(target_kind, target_id))
        return result
