import os
import sqlite3
import tempfile
import unittest
from datetime import timedelta
from unittest.mock import Mock

from sqlalchemy import insert
from sqlalchemy.exc import IntegrityError, OperationalError


class TestStore(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        db_fd, cls.db_path = tempfile.mkstemp(suffix=".db")
        os.close(db_fd)

        from forum import create_app
        from forum import db as db_module
        from forum.clock import utcnow
        from forum.errors import NotFoundError, StorageError
        from forum.models import AuthSession, Vote
        from forum.repositories import comment_repository, post_repository, user_repository

        cls.app = create_app({
            "TESTING": True,
            "SQLALCHEMY_DATABASE_URI": f"sqlite:///{cls.db_path}",
            "STORE_RETRY_DELAY_SECONDS": 0,
            "STORE_WRITE_RETRIES": 2,
        })
        cls.db = db_module.db
        cls.run_in_transaction = staticmethod(db_module.run_in_transaction)
        cls.utcnow = staticmethod(utcnow)
        cls.NotFoundError = NotFoundError
        cls.StorageError = StorageError
        cls.AuthSession = AuthSession
        cls.Vote = Vote
        cls.user_repository = user_repository
        cls.post_repository = post_repository
        cls.comment_repository = comment_repository

    @classmethod
    def tearDownClass(cls):
        with cls.app.app_context():
            cls.db.engine.dispose()
        if os.path.exists(cls.db_path):
            os.remove(cls.db_path)

    def setUp(self):
        self.ctx = self.app.app_context()
        self.ctx.push()
        self.db.drop_all()
        self.db.create_all()

        session = self.db.session
        self.user_id = self.user_repository.create_user(session, "alice", "a@x.com", "hash").id
        self.post_id = self.post_repository.create_post(session, self.user_id, "t", "c").id
        self.comment_id = self.comment_repository.create_comment(
            session, self.user_id, self.post_id, "hi"
        ).id
        session.commit()

    def tearDown(self):
        self.db.session.remove()
        self.ctx.pop()

    def _insert_vote(self, **values):
        row = {"user_id": self.user_id, "post_id": None, "comment_id": None, "value": 1}
        row.update(values)
        self.db.session.execute(insert(self.Vote).values(**row))
        self.db.session.commit()

    def test_foreign_keys_are_enforced(self):
        with self.assertRaises(IntegrityError):
            self._insert_vote(post_id=9999)
        self.db.session.rollback()

    def test_one_vote_per_user_and_post(self):
        self._insert_vote(post_id=self.post_id)
        with self.assertRaises(IntegrityError):
            self._insert_vote(post_id=self.post_id, value=-1)
        self.db.session.rollback()

    def test_post_and_comment_votes_are_keyed_separately(self):
        self._insert_vote(post_id=self.post_id)
        self._insert_vote(comment_id=self.comment_id)
        self.assertEqual(self.Vote.query.count(), 2)

    def test_vote_needs_exactly_one_target(self):
        for values in (
            {},
            {"post_id": self.post_id, "comment_id": self.comment_id},
        ):
            with self.subTest(values=values):
                with self.assertRaises(IntegrityError):
                    self._insert_vote(**values)
                self.db.session.rollback()

    def test_vote_value_is_constrained(self):
        with self.assertRaises(IntegrityError):
            self._insert_vote(post_id=self.post_id, value=0)
        self.db.session.rollback()

    def test_one_session_row_per_user(self):
        expires_at = self.utcnow() + timedelta(hours=1)
        self.db.session.add(self.AuthSession(token="a" * 64, user_id=self.user_id, expires_at=expires_at))
        self.db.session.commit()

        self.db.session.add(self.AuthSession(token="b" * 64, user_id=self.user_id, expires_at=expires_at))
        with self.assertRaises(IntegrityError):
            self.db.session.commit()
        self.db.session.rollback()

    def test_transaction_retries_lock_contention(self):
        locked = OperationalError("INSERT", {}, sqlite3.OperationalError("database is locked"))
        work = Mock(side_effect=[locked, "done"])

        self.assertEqual(self.run_in_transaction(self.db, work), "done")
        self.assertEqual(work.call_count, 2)

    def test_transaction_gives_up_after_retries(self):
        locked = OperationalError("INSERT", {}, sqlite3.OperationalError("database is locked"))
        work = Mock(side_effect=locked)

        with self.assertRaises(self.StorageError):
            self.run_in_transaction(self.db, work, retries=1)
        self.assertEqual(work.call_count, 2)

    def test_other_store_failures_are_not_retried(self):
        broken = OperationalError("SELECT", {}, sqlite3.OperationalError("no such table: nope"))
        work = Mock(side_effect=broken)

        with self.assertRaises(self.StorageError):
            self.run_in_transaction(self.db, work)
        self.assertEqual(work.call_count, 1)

    def test_domain_error_rolls_back(self):
        def work(session):
            self.post_repository.create_post(session, self.user_id, "draft", "body")
            raise self.NotFoundError("Post not found")

        with self.assertRaises(self.NotFoundError):
            self.run_in_transaction(self.db, work)

        self.assertEqual(self.post_repository.list_recent(self.db.session)[0].id, self.post_id)
        self.assertEqual(len(self.post_repository.list_recent(self.db.session)), 1)


if __name__ == "__main__":
    unittest.main()
