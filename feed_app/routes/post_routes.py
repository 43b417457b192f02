from flask import Blueprint, request, jsonify
from flask_jwt_extended import jwt_required, get_jwt_identity

from feed_app.services import post_service


post_bp = Blueprint("posts", __name__)


def _form_data():
    if request.is_json:
        data = request.get_json(silent=True)
        return data if isinstance(data, dict) else {}
    return request.form.to_dict()


def _uploaded_image():
    return request.files.get("image") or request.files.get("file")


@post_bp.route("/posts", methods=["GET"])
def list_posts():
    return jsonify(post_service.get_posts(request.args.to_dict())), 200


@post_bp.route("/posts", methods=["POST"])
@jwt_required()
def create_post():
    result = post_service.create_post(
        get_jwt_identity(),
        _form_data(),
        _uploaded_image(),
    )
    return jsonify(result), 201


@post_bp.route("/posts/<int:post_id>", methods=["GET"])
def get_post(post_id):
    return jsonify(post_service.get_post(post_id)), 200


@post_bp.route("/posts/<int:post_id>", methods=["PUT"])
@jwt_required()
def update_post(post_id):
    result = post_service.update_post(
        get_jwt_identity(),
        post_id,
        _form_data(),
        _uploaded_image(),
    )
    return jsonify(result), 200


@post_bp.route("/posts/<int:post_id>", methods=["DELETE"])
@jwt_required()
def delete_post(post_id):
    return jsonify(post_service.delete_post(get_jwt_identity(), post_id)), 200
