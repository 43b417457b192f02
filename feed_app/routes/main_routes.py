import os

from flask import (
    Blueprint,
    Response,
    abort,
    current_app,
    request,
    send_from_directory,
    stream_with_context,
)
from minio.error import S3Error

from feed_app.errors import MediaStorageError, NotFound
from feed_app.extensions.minio_client import get_minio_client
from feed_app.services.image_service import IMAGE_PREFIX, local_path_for


main_bp = Blueprint("main", __name__)


def _is_media_not_found(error: S3Error) -> bool:
    return error.code in {"NoSuchKey", "NoSuchBucket", "NoSuchObject"}


def _cache_max_age() -> int:
    return max(int(current_app.config.get("MEDIA_CACHE_MAX_AGE_SECONDS", 0)), 0)


def _send_local_image(image_url: str):
    path = local_path_for(image_url)
    if path is None or not os.path.isfile(path):
        raise NotFound("Image not found")
    return send_from_directory(
        current_app.config["UPLOAD_FOLDER"],
        os.path.basename(path),
        max_age=_cache_max_age(),
    )


def _image_response(stat):
    response = Response(
        status=200,
        content_type=getattr(stat, "content_type", None) or "application/octet-stream",
    )
    response.cache_control.public = True
    response.cache_control.max_age = _cache_max_age()

    size = getattr(stat, "size", None)
    if size is not None:
        response.content_length = size
    else:
        response.automatically_set_content_length = False
    etag = getattr(stat, "etag", None)
    if etag:
        response.set_etag(str(etag).strip().strip('"'))
    last_modified = getattr(stat, "last_modified", None)
    if last_modified:
        response.last_modified = last_modified

    # Turns the response into a 304 when the client's copy is current.
    return response.make_conditional(request)


def _stream_from_minio(object_name: str):
    bucket = current_app.config["MINIO_BUCKET"]
    minio = get_minio_client()

    try:
        stat = minio.stat_object(bucket_name=bucket, object_name=object_name)
    except S3Error as e:
        if _is_media_not_found(e):
            return None
        raise MediaStorageError("Media unavailable") from e
    except Exception as e:
        raise MediaStorageError("Media unavailable") from e

    response = _image_response(stat)
    if response.status_code == 304 or request.method == "HEAD":
        return response

    try:
        minio_response = minio.get_object(bucket_name=bucket, object_name=object_name)
    except S3Error as e:
        if _is_media_not_found(e):
            return None
        raise MediaStorageError("Media unavailable") from e
    except Exception as e:
        raise MediaStorageError("Media unavailable") from e

    chunk_size = max(
        int(current_app.config.get("MEDIA_STREAM_CHUNK_SIZE", 256 * 1024)),
        1024,
    )

    def _stream():
        try:
            for chunk in minio_response.stream(chunk_size):
                yield chunk
        finally:
            minio_response.close()
            minio_response.release_conn()

    response.response = stream_with_context(_stream())
    response.direct_passthrough = True
    return response


@main_bp.route(f"/{IMAGE_PREFIX}/<path:filename>", methods=["GET", "HEAD"])
def get_image(filename: str):
    image_url = f"{IMAGE_PREFIX}/{filename}"
    if local_path_for(image_url) is None:
        abort(404)

    if current_app.config["IMAGE_STORAGE"] == "minio":
        try:
            response = _stream_from_minio(image_url)
        except MediaStorageError:
            if not os.path.isfile(local_path_for(image_url)):
                raise
            response = None
        if response is not None:
            return response

    # Local uploads, and uploads that fell back to disk.
    return _send_local_image(image_url)
