from flask import Blueprint, current_app, jsonify, redirect, render_template, request, url_for

from forum.errors import NotFoundError, ValidationError
from forum.extensions.session_auth import (
    auth_required,
    get_current_user_id,
    resolve_optional_user,
)


main_bp = Blueprint("main", __name__)


def _auth_service():
    return current_app.extensions["auth_service"]


def _content_service():
    return current_app.extensions["content_service"]


@main_bp.route("/", methods=["GET"])
def index():
    user_id = resolve_optional_user()
    user = _auth_service().get_user(user_id) if user_id else None
    posts = _content_service().list_posts(viewer_id=user_id)
    return render_template("index.html", posts=posts, user=user)


@main_bp.route("/post", methods=["GET", "POST"])
@auth_required()
def create_post():
    if request.method == "GET":
        return render_template("post_form.html", error="")

    title = request.form.get("title")
    content = request.form.get("content")

    try:
        _content_service().create_post(get_current_user_id(), title, content)
    except ValidationError as e:
        return (
            render_template("post_form.html", error=e.message, title=title, content=content),
            e.status_code,
        )

    return redirect(url_for("main.index"), code=303)


@main_bp.route("/comment", methods=["POST"])
@auth_required()
def create_comment():
    post_id = request.form.get("post_id", type=int)
    if post_id is None:
        return jsonify({"error": "Post id is required"}), 400

    try:
        _content_service().add_comment(
            get_current_user_id(),
            post_id,
            request.form.get("comment") or request.form.get("text"),
        )
    except NotFoundError as e:
        return jsonify({"error": e.message}), 404
    except ValidationError as e:
        return jsonify({"error": e.message}), e.status_code

    return redirect(url_for("main.index"), code=303)


@main_bp.route("/healthz", methods=["GET"])
def healthz():
    return {"status": "ok"}, 200
