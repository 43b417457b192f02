"""Storage of post images.

Images are referenced from posts by a relative path of the form
``images/<name>``. Depending on ``IMAGE_STORAGE`` the bytes live in the local
upload folder or in a MinIO bucket under the same object name. Deleting an
image never fails the request that triggered it; problems are logged.
"""
import logging
import os
import uuid

from flask import current_app
from werkzeug.utils import safe_join

from feed_app.errors import MediaStorageError
from feed_app.extensions.extensions import socketio
from feed_app.extensions.minio_client import ensure_bucket, get_minio_client


logger = logging.getLogger(__name__)

IMAGE_PREFIX = "images"

ALLOWED_IMAGE_MIME_TYPES = {
    "image/png": "png",
    "image/jpg": "jpg",
    "image/jpeg": "jpeg",
}


def is_supported_image(file_storage) -> bool:
    if file_storage is None or not getattr(file_storage, "filename", ""):
        return False
    return (getattr(file_storage, "mimetype", None) or "") in ALLOWED_IMAGE_MIME_TYPES


def _filename_from_ref(image_url):
    if not isinstance(image_url, str):
        return None
    ref = image_url.strip().replace("\\", "/").lstrip("/")
    prefix = f"{IMAGE_PREFIX}/"
    if not ref.startswith(prefix):
        return None
    filename = ref[len(prefix):]
    if not filename or "/" in filename or filename in {".", ".."}:
        return None
    return filename


def normalize_image_ref(image_url):
    """Return ``images/<name>`` for a reference to a stored image, else None."""
    filename = _filename_from_ref(image_url)
    if filename is None:
        return None
    return f"{IMAGE_PREFIX}/{filename}"


def local_path_for(image_url):
    filename = _filename_from_ref(image_url)
    if filename is None:
        return None
    return safe_join(current_app.config["UPLOAD_FOLDER"], filename)


def _get_stream_and_length(file_storage):
    stream = getattr(file_storage, "stream", file_storage)
    try:
        stream.seek(0, 2)
        length = stream.tell()
        stream.seek(0)
        return stream, length
    except (AttributeError, OSError):
        return stream, -1


def _store_locally(file_storage, filename: str):
    folder = current_app.config["UPLOAD_FOLDER"]
    os.makedirs(folder, exist_ok=True)

    stream = getattr(file_storage, "stream", None)
    if stream is not None and hasattr(stream, "seek"):
        stream.seek(0)

    file_storage.save(os.path.join(folder, filename))


def _store_in_minio(file_storage, object_name: str, mimetype: str):
    minio = get_minio_client()
    ensure_bucket(minio, current_app.config["MINIO_BUCKET"])

    stream, length = _get_stream_and_length(file_storage)
    upload_kwargs = {
        "bucket_name": current_app.config["MINIO_BUCKET"],
        "object_name": object_name,
        "data": stream,
        "length": length,
        "content_type": mimetype,
    }
    if length == -1:
        upload_kwargs["part_size"] = 10 * 1024 * 1024

    minio.put_object(**upload_kwargs)


def save_image(file_storage) -> str:
    mimetype = file_storage.mimetype
    filename = f"{uuid.uuid4().hex}.{ALLOWED_IMAGE_MIME_TYPES[mimetype]}"
    image_url = f"{IMAGE_PREFIX}/{filename}"

    if current_app.config["IMAGE_STORAGE"] == "minio":
        try:
            _store_in_minio(file_storage, image_url, mimetype)
            return image_url
        except Exception as e:
            if not current_app.config.get("MEDIA_LOCAL_FALLBACK_ENABLED", True):
                raise MediaStorageError() from e
            logger.warning("Object storage unavailable, storing %s locally: %s", image_url, e)

    try:
        _store_locally(file_storage, filename)
    except OSError as e:
        raise MediaStorageError() from e

    logger.debug("Stored image %s", image_url)
    return image_url


def _remove_local_file(image_url, missing_ok=False):
    path = local_path_for(image_url)
    if path is None:
        logger.warning("Refusing to delete image outside the upload folder: %r", image_url)
        return
    try:
        os.remove(path)
        logger.info("Deleted image %s", image_url)
    except FileNotFoundError:
        if not missing_ok:
            logger.warning("Image %s was already gone", image_url)
    except OSError as e:
        logger.warning("Could not delete image %s: %s", image_url, e)


def _remove_image(image_url):
    if current_app.config["IMAGE_STORAGE"] != "minio":
        _remove_local_file(image_url)
        return

    object_name = normalize_image_ref(image_url)
    if object_name is None:
        logger.warning("Refusing to delete unknown image reference %r", image_url)
        return

    try:
        get_minio_client().remove_object(current_app.config["MINIO_BUCKET"], object_name)
        logger.info("Deleted image %s from object storage", object_name)
    except Exception as e:
        logger.warning("Could not delete image %s from object storage: %s", object_name, e)

    # Uploads that fell back to disk live in the upload folder.
    _remove_local_file(image_url, missing_ok=True)


def _remove_image_in_app(app, image_url):
    with app.app_context():
        _remove_image(image_url)


def clear_image(image_url):
    """Delete an image without waiting for the result."""
    if not image_url:
        return None

    if not current_app.config.get("IMAGE_CLEANUP_IN_BACKGROUND", True):
        _remove_image(image_url)
        return None

    app = current_app._get_current_object()
    return socketio.start_background_task(_remove_image_in_app, app, image_url)
