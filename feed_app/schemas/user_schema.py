from marshmallow import EXCLUDE, ValidationError, pre_load, validate, validates

from feed_app.extensions.extensions import ma
from feed_app.repositories import user_repository


class SignupSchema(ma.Schema):
    email = ma.Email(
        required=True,
        error_messages={"invalid": "Please enter a valid email."},
    )
    password = ma.Str(required=True, load_only=True, validate=validate.Length(min=5))
    name = ma.Str(required=True, validate=validate.Length(min=1))

    class Meta:
        unknown = EXCLUDE

    @pre_load
    def normalize(self, data, **kwargs):
        cleaned = dict(data)
        for key in ("password", "name"):
            if isinstance(cleaned.get(key), str):
                cleaned[key] = cleaned[key].strip()
        if isinstance(cleaned.get("email"), str):
            cleaned["email"] = cleaned["email"].strip().lower()
        return cleaned

    @validates("email")
    def email_not_taken(self, value, **kwargs):
        if user_repository.get_by_email(value):
            raise ValidationError("E-Mail address already exists!")


signup_schema = SignupSchema()
