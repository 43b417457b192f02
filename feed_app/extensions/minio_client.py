import urllib3
from threading import Lock

from flask import current_app
from minio import Minio


_minio_client = None
_minio_signature = None
_minio_lock = Lock()


def _build_signature():
    config = current_app.config
    return (
        config["MINIO_ENDPOINT"],
        config["MINIO_ACCESS_KEY"],
        config["MINIO_SECRET_KEY"],
        config["MINIO_SECURE"],
        config["MINIO_CONNECT_TIMEOUT"],
        config["MINIO_READ_TIMEOUT"],
        config.get("MINIO_HTTP_POOL_MAXSIZE", 32),
    )


def get_minio_client():
    """Return a client for the configured object store, rebuilt when the settings change."""
    global _minio_client, _minio_signature

    signature = _build_signature()
    with _minio_lock:
        if _minio_client is not None and _minio_signature == signature:
            return _minio_client

        endpoint, access_key, secret_key, secure, connect_timeout, read_timeout, pool_size = signature
        http_client = urllib3.PoolManager(
            timeout=urllib3.Timeout(connect=connect_timeout, read=read_timeout),
            retries=False,
            maxsize=pool_size,
        )

        _minio_client = Minio(
            endpoint,
            access_key=access_key,
            secret_key=secret_key,
            secure=secure,
            http_client=http_client,
        )
        _minio_signature = signature
        return _minio_client


def ensure_bucket(client, bucket: str):
    if not client.bucket_exists(bucket):
        client.make_bucket(bucket)
