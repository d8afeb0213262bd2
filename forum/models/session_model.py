from forum.db import db


class AuthSession(db.Model):
    __tablename__ = "sessions"

    id = db.Column(db.Integer, primary_key=True)
    token = db.Column(db.String(64), unique=True, nullable=False)

    # unique: a user holds at most one session row at a time
    user_id = db.Column(
        db.Integer,
        db.ForeignKey("users.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
    )

    expires_at = db.Column(db.DateTime, nullable=False)

    def is_live(self, now) -> bool:
        return now < self.expires_at
