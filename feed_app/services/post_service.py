import logging

from flask import current_app
from marshmallow import ValidationError

from feed_app.errors import NotAuthorized, NotFound, ValidationFailed
from feed_app.repositories import post_repository, user_repository
from feed_app.schemas.post_schema import (
    page_query_schema,
    post_input_schema,
    post_schema,
    posts_schema,
)
from feed_app.services import image_service
from feed_app.socket_events import broadcast_post_event


logger = logging.getLogger(__name__)


def _load_post_input(form):
    try:
        return post_input_schema.load(form)
    except ValidationError as e:
        raise ValidationFailed(data=e.messages) from e


def _get_post_or_404(post_id):
    post = post_repository.get_by_id(post_id)
    if not post:
        raise NotFound("Could not find post.")
    return post


def _ensure_owner(post, user_id):
    if str(post.creator_id) != str(user_id):
        raise NotAuthorized("Not authorized!")


def get_posts(args):
    try:
        page = page_query_schema.load(args)["page"]
    except ValidationError as e:
        raise ValidationFailed("Invalid page requested.", data=e.messages) from e

    per_page = current_app.config.get("POSTS_PER_PAGE", 10)
    total = post_repository.count_posts()
    # Pages past the end are empty; their offset may not fit a database integer.
    posts = []
    if (page - 1) * per_page < total:
        posts = post_repository.get_page(page, per_page)

    return {
        "message": "Fetched posts successfully.",
        "posts": posts_schema.dump(posts),
        "totalItems": total,
    }


def get_post(post_id):
    post = _get_post_or_404(post_id)
    return {"message": "Post fetched.", "post": post_schema.dump(post)}


def create_post(user_id, form, image_file):
    data = _load_post_input(form)

    if not image_service.is_supported_image(image_file):
        raise ValidationFailed("No image provided.")

    creator = user_repository.get_by_id(int(user_id))
    if not creator:
        raise NotFound("Could not find user.")

    image_url = image_service.save_image(image_file)
    try:
        post = post_repository.add_post_for_creator(
            creator,
            title=data["title"],
            content=data["content"],
            image_url=image_url,
        )
    except Exception:
        image_service.clear_image(image_url)
        raise

    logger.info("User %s created post %s", creator.id, post.id)
    payload = post_schema.dump(post)
    broadcast_post_event("create", payload)

    return {
        "message": "Post created successfully!",
        "post": payload,
        "creator": {"id": creator.id, "name": creator.name},
    }


def update_post(user_id, post_id, form, image_file):
    data = _load_post_input(form)

    has_upload = image_file is not None and bool(getattr(image_file, "filename", ""))
    if has_upload and not image_service.is_supported_image(image_file):
        raise ValidationFailed("No image provided.")

    kept_image = image_service.normalize_image_ref(data.get("image"))
    if not has_upload and not kept_image:
        raise ValidationFailed("No file picked.")

    post = _get_post_or_404(post_id)
    _ensure_owner(post, user_id)

    previous_image = post.image_url
    # Without an upload the post may only keep the image it already has.
    if not has_upload and kept_image != previous_image:
        raise ValidationFailed("No file picked.")

    image_url = image_service.save_image(image_file) if has_upload else kept_image

    post.title = data["title"]
    post.content = data["content"]
    post.image_url = image_url
    try:
        post_repository.save(post)
    except Exception:
        post_repository.rollback()
        if image_url != previous_image:
            image_service.clear_image(image_url)
        raise

    if image_url != previous_image:
        image_service.clear_image(previous_image)

    logger.info("User %s updated post %s", user_id, post.id)
    payload = post_schema.dump(post)
    broadcast_post_event("update", payload)

    return {"message": "Post updated!", "post": payload}


def delete_post(user_id, post_id):
    post = _get_post_or_404(post_id)
    _ensure_owner(post, user_id)

    creator = post.creator
    image_url = post.image_url
    post_repository.delete_for_creator(creator, post)
    image_service.clear_image(image_url)

    logger.info("User %s deleted post %s", user_id, post_id)
    broadcast_post_event("delete", post_id)

    return {"message": "Deleted post."}
