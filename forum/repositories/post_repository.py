from forum.models.post_model import Post


def create_post(session, author_id, title, content):
    post = Post(
        author_id=author_id,
        title=title,
        content=content,
    )
    session.add(post)
    session.flush()
    return post


def get_by_id(session, post_id: int):
    return session.get(Post, post_id)


def exists(session, post_id: int) -> bool:
    return session.query(Post.id).filter_by(id=post_id).first() is not None


def list_recent(session):
    return session.query(Post).order_by(Post.created_at.desc(), Post.id.desc()).all()
