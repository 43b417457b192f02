from flask import Blueprint, request, jsonify

from feed_app.errors import ValidationFailed
from feed_app.services import auth_service


auth_bp = Blueprint("auth", __name__)


@auth_bp.route("/signup", methods=["PUT", "POST"])
def signup():
    data = request.get_json(silent=True)
    if data is None and request.form:
        data = request.form.to_dict()
    if not isinstance(data, dict):
        raise ValidationFailed("Invalid JSON body")

    user = auth_service.signup(data)
    return jsonify({"message": "User created!", "userId": user.id}), 201
