from forum.db import run_in_transaction, run_query
from forum.errors import NotFoundError, ValidationError
from forum.repositories import comment_repository, post_repository, vote_repository
from forum.services.vote_service import state_for_value


MAX_TITLE_LENGTH = 200


def _require_text(value, message):
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(message)
    return value.strip()


def _serialize_comment(comment, counts, viewer_values):
    likes, dislikes = counts.get(comment.id, (0, 0))
    return {
        "id": comment.id,
        "post_id": comment.post_id,
        "author": comment.author.username if comment.author else f"user-{comment.author_id}",
        "text": comment.text,
        "created_at": comment.created_at,
        "likes": likes,
        "dislikes": dislikes,
        "state": state_for_value(viewer_values.get(("comment", comment.id))).value,
    }


def _serialize_post(post, counts, viewer_values, comments):
    likes, dislikes = counts.get(post.id, (0, 0))
    return {
        "id": post.id,
        "title": post.title,
        "content": post.content,
        "author": post.author.username if post.author else f"user-{post.author_id}",
        "created_at": post.created_at,
        "likes": likes,
        "dislikes": dislikes,
        "state": state_for_value(viewer_values.get(("post", post.id))).value,
        "comments": comments,
    }


class ContentService:
    """Create/read access to posts and comments."""

    def __init__(self, store):
        self.store = store

    def create_post(self, author_id, title, content):
        title = _require_text(title, "Title and content are required")
        content = _require_text(content, "Title and content are required")
        if len(title) > MAX_TITLE_LENGTH:
            raise ValidationError(f"Title must be at most {MAX_TITLE_LENGTH} characters")

        return run_in_transaction(
            self.store,
            lambda session: post_repository.create_post(session, author_id, title, content).id,
        )

    def add_comment(self, author_id, post_id, text):
        text = _require_text(text, "Comment text is required")

        def create(session):
            if not post_repository.exists(session, post_id):
                raise NotFoundError("Post not found")
            return comment_repository.create_comment(session, author_id, post_id, text).id

        return run_in_transaction(self.store, create)

    def list_posts(self, viewer_id=None):
        def load(session):
            posts = post_repository.list_recent(session)
            post_ids = [post.id for post in posts]
            comments = comment_repository.get_comments_by_posts(session, post_ids)
            comment_ids = [comment.id for comment in comments]

            post_counts = vote_repository.counts_for_posts(session, post_ids)
            comment_counts = vote_repository.counts_for_comments(session, comment_ids)
            viewer_values = {}
            if viewer_id is not None:
                viewer_values = vote_repository.values_for_user(
                    session, viewer_id, post_ids=post_ids, comment_ids=comment_ids
                )

            comments_by_post = {}
            for comment in comments:
                comments_by_post.setdefault(comment.post_id, []).append(
                    _serialize_comment(comment, comment_counts, viewer_values)
                )

            return [
                _serialize_post(
                    post,
                    post_counts,
                    viewer_values,
                    comments_by_post.get(post.id, []),
                )
                for post in posts
            ]

        return run_query(self.store, load)
