from forum.models.user_model import User
from forum.models.session_model import AuthSession
from forum.models.post_model import Post
from forum.models.comment_model import Comment
from forum.models.vote_model import Vote

__all__ = ["User", "AuthSession", "Post", "Comment", "Vote"]
