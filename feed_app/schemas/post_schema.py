from marshmallow import EXCLUDE, pre_load, validate

from feed_app.extensions.extensions import ma


class PostInputSchema(ma.Schema):
    title = ma.Str(required=True, validate=validate.Length(min=5))
    content = ma.Str(required=True, validate=validate.Length(min=5))
    # Existing image URL sent back by clients that keep the current image.
    image = ma.Str(load_default=None)

    class Meta:
        unknown = EXCLUDE

    @pre_load
    def strip_strings(self, data, **kwargs):
        cleaned = {}
        for key, value in data.items():
            if isinstance(value, str):
                value = value.strip()
            cleaned[key] = value
        if not cleaned.get("image"):
            cleaned.pop("image", None)
        return cleaned


class PageQuerySchema(ma.Schema):
    page = ma.Int(load_default=1, validate=validate.Range(min=1))

    class Meta:
        unknown = EXCLUDE


class CreatorSchema(ma.Schema):
    id = ma.Int()
    name = ma.Str()
    email = ma.Email()


class PostSchema(ma.Schema):
    id = ma.Int()
    title = ma.Str()
    content = ma.Str()
    image_url = ma.Str(data_key="imageUrl")
    creator = ma.Nested(CreatorSchema)
    created_at = ma.DateTime(data_key="createdAt")
    updated_at = ma.DateTime(data_key="updatedAt")


post_input_schema = PostInputSchema()
page_query_schema = PageQuerySchema()
post_schema = PostSchema()
posts_schema = PostSchema(many=True)
