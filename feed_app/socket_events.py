import logging

from flask import request
from flask_socketio import emit

from feed_app.extensions.extensions import socketio


logger = logging.getLogger(__name__)

POSTS_EVENT = "posts"

_registered = False
_connected_clients = set()


def connected_client_count():
    return len(_connected_clients)


def broadcast_post_event(action, post):
    """Tell every connected client that a post was created, updated or deleted."""
    socketio.emit(POSTS_EVENT, {"action": action, "post": post})
    logger.debug("Broadcast %s for post to %d clients", action, connected_client_count())


def register_socket_events():
    global _registered
    if _registered:
        return

    @socketio.on("connect")
    def handle_connect(auth=None):
        _connected_clients.add(request.sid)
        logger.debug("Client %s connected", request.sid)
        emit("connected", {"sid": request.sid})

    @socketio.on("disconnect")
    def handle_disconnect(*args):
        _connected_clients.discard(request.sid)
        logger.debug("Client %s disconnected", request.sid)

    _registered = True
