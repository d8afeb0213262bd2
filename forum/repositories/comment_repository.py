from forum.models.comment_model import Comment


def create_comment(session, author_id, post_id, text):
    comment = Comment(
        author_id=author_id,
        post_id=post_id,
        text=text,
    )
    session.add(comment)
    session.flush()
    return comment


def exists(session, comment_id: int) -> bool:
    return session.query(Comment.id).filter_by(id=comment_id).first() is not None


def get_comments_by_posts(session, post_ids):
    if not post_ids:
        return []

    return (
        session.query(Comment)
        .filter(Comment.post_id.in_(post_ids))
        .order_by(Comment.created_at.asc(), Comment.id.asc())
        .all()
    )
