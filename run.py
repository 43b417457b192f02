import os

from feed_app import create_app
from feed_app.extensions.extensions import socketio

app = create_app()


if __name__ == "__main__":
    socketio.run(
        app,
        host=os.getenv("HOST", "127.0.0.1"),
        port=int(os.getenv("PORT", "8080")),
        allow_unsafe_werkzeug=True,
    )
