import os
import tempfile
import unittest
from urllib.parse import urlparse


class TestContentRoutes(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        db_fd, cls.db_path = tempfile.mkstemp(suffix=".db")
        os.close(db_fd)

        from forum import create_app
        from forum.db import db
        from forum.models import Comment, Post

        cls.app = create_app({
            "TESTING": True,
            "SQLALCHEMY_DATABASE_URI": f"sqlite:///{cls.db_path}",
        })
        cls.db = db
        cls.Post = Post
        cls.Comment = Comment

    @classmethod
    def tearDownClass(cls):
        with cls.app.app_context():
            cls.db.engine.dispose()
        if os.path.exists(cls.db_path):
            os.remove(cls.db_path)

    def setUp(self):
        with self.app.app_context():
            self.db.drop_all()
            self.db.create_all()
        self.client = self.app.test_client()

    def _signup(self):
        self.client.post(
            "/signup",
            data={"username": "alice", "email": "a@x.com", "password": "longenough1"},
        )

    def test_index_is_public(self):
        response = self.client.get("/")
        self.assertEqual(response.status_code, 200)
        self.assertIn(b"No posts yet.", response.data)
        self.assertNotIn(b"Log out", response.data)
        self.assertEqual(response.headers["X-Frame-Options"], "DENY")

    def test_create_post_requires_session(self):
        response = self.client.post("/post", data={"title": "t", "content": "c"})
        self.assertEqual(response.status_code, 302)
        self.assertEqual(urlparse(response.headers["Location"]).path, "/login")

    def test_create_post_comment_and_list_with_counts(self):
        self._signup()

        response = self.client.post("/post", data={"title": "Hello", "content": "First post"})
        self.assertEqual(response.status_code, 303)

        with self.app.app_context():
            post = self.Post.query.one()
            post_id = post.id

        comment = self.client.post("/comment", data={"post_id": post_id, "comment": "Welcome"})
        self.assertEqual(comment.status_code, 303)

        self.client.post("/like", data={"post_id": post_id, "polarity": "like"})

        page = self.client.get("/")
        self.assertEqual(page.status_code, 200)
        self.assertIn(b"Hello", page.data)
        self.assertIn(b"Welcome", page.data)
        self.assertIn(b"1 likes, 0 dislikes", page.data)
        self.assertIn(b'data-state="liked"', page.data)
        self.assertIn(b"Log out (alice)", page.data)

    def test_create_post_requires_title_and_content(self):
        self._signup()

        response = self.client.post("/post", data={"title": "  ", "content": "body"})
        self.assertEqual(response.status_code, 400)
        self.assertIn(b"Title and content are required", response.data)

        with self.app.app_context():
            self.assertEqual(self.Post.query.count(), 0)

    def test_comment_on_unknown_post(self):
        self._signup()

        response = self.client.post("/comment", data={"post_id": 42, "comment": "hi"})
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.get_json()["error"], "Post not found")

    def test_healthz(self):
        response = self.client.get("/healthz")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.get_json(), {"status": "ok"})


if __name__ == "__main__":
    unittest.main()
