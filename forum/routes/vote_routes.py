from flask import Blueprint, current_app, jsonify, request
from marshmallow import ValidationError as SchemaValidationError

from forum.errors import NotFoundError, ValidationError
from forum.extensions.session_auth import auth_required, get_current_user_id
from forum.schemas.vote_schema import VoteRequestSchema, VoteResultSchema
from forum.services.vote_service import COMMENT, POST, resolve_target


vote_bp = Blueprint("votes", __name__)

vote_request_schema = VoteRequestSchema()
vote_result_schema = VoteResultSchema()


def _request_payload():
    if request.is_json:
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            raise ValidationError("Invalid JSON body")
        return data
    return request.form.to_dict()


def _toggle(expected_kind):
    try:
        data = vote_request_schema.load(_request_payload())
    except SchemaValidationError as e:
        return jsonify({"error": "Invalid vote request", "fields": e.messages}), 400
    except ValidationError as e:
        return jsonify({"error": e.message}), e.status_code

    try:
        target_kind, target_id = resolve_target(data["post_id"], data["comment_id"])
        if target_kind != expected_kind:
            raise ValidationError(f"This endpoint only accepts {expected_kind} votes")

        result = current_app.extensions["vote_service"].toggle_with_counts(
            get_current_user_id(),
            target_kind,
            target_id,
            data["polarity"],
        )
        return jsonify(vote_result_schema.dump(result)), 200

    except NotFoundError as e:
        return jsonify({"error": e.message}), 404
    except ValidationError as e:
        return jsonify({"error": e.message}), e.status_code


@vote_bp.route("/like", methods=["POST"])
@auth_required(api=True)
def like_post():
    return _toggle(POST)


@vote_bp.route("/commentlike", methods=["POST"])
@auth_required(api=True)
def like_comment():
    return _toggle(COMMENT)
