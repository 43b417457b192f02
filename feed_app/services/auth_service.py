import logging

from marshmallow import ValidationError
from werkzeug.security import generate_password_hash

from feed_app.errors import ValidationFailed
from feed_app.repositories import user_repository
from feed_app.schemas.user_schema import signup_schema


logger = logging.getLogger(__name__)


def signup(data):
    try:
        fields = signup_schema.load(data)
    except ValidationError as e:
        raise ValidationFailed("Validation failed.", data=e.messages) from e

    user = user_repository.create_user(
        email=fields["email"],
        name=fields["name"],
        password_hash=generate_password_hash(fields["password"]),
    )
    logger.info("Registered user %s", user.id)
    return user
