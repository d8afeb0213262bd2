from flask import Blueprint, current_app, make_response, redirect, render_template, request, url_for

from forum.errors import AuthError, ConflictError, ValidationError
from forum.extensions.session_auth import (
    auth_required,
    clear_session_cookie,
    get_current_user_id,
    not_auth_required,
    set_session_cookie,
)


auth_bp = Blueprint("auth", __name__)


def _auth_service():
    return current_app.extensions["auth_service"]


@auth_bp.route("/signup", methods=["GET", "POST"])
@not_auth_required()
def signup():
    if request.method == "GET":
        return render_template("signup.html", error="")

    username = request.form.get("username")
    email = request.form.get("email")

    try:
        _, token, expires_at = _auth_service().signup(
            username,
            email,
            request.form.get("password"),
        )
    except (ValidationError, ConflictError) as e:
        return (
            render_template("signup.html", error=e.message, username=username, email=email),
            e.status_code,
        )

    response = redirect(url_for("main.index"), code=303)
    return set_session_cookie(response, token, expires_at)


@auth_bp.route("/login", methods=["GET", "POST"])
@not_auth_required()
def login():
    if request.method == "GET":
        return render_template("login.html", error="")

    email = request.form.get("email")

    try:
        _, token, expires_at = _auth_service().login(
            email,
            request.form.get("password"),
        )
    except (ValidationError, AuthError) as e:
        return render_template("login.html", error=e.message, email=email), e.status_code

    response = redirect(url_for("main.index"), code=303)
    return set_session_cookie(response, token, expires_at)


@auth_bp.route("/logout", methods=["GET", "POST"])
@auth_required()
def logout():
    _auth_service().logout(get_current_user_id())

    response = make_response(redirect(url_for("auth.login"), code=303))
    return clear_session_cookie(response)
