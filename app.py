from __future__ import annotations
from flask import Flask, jsonify
from redis import Redis
from rq import Queue

from numgen.config import Settings
from search_api import search_bp

QUEUE_NAME = "numgen"

PAGE_INFO = {
    "name": "numgen",
    "endpoints": {
        "POST /api/search": "{bits, mode: prime|odd, count} -> results now",
        "POST /api/search/submit": "same body, queued on RQ",
        "GET /api/job/<id>": "queued job status / result",
        "GET /api/queue": "queue size",
        "GET /api/health": "liveness + redis ping",
    },
}


def create_app(settings: Settings | None = None, queue=None) -> Flask:
    settings = settings or Settings.from_env()
    if queue is None:
        redis_conn = Redis.from_url(settings.redis_url)
        queue = Queue(QUEUE_NAME, connection=redis_conn, default_timeout=60*60)  # 1h

    app = Flask(__name__)
    app.extensions["numgen.settings"] = settings
    app.extensions["numgen.queue"] = queue
    app.register_blueprint(search_bp)

    @app.get("/")
    def home():
        return jsonify(PAGE_INFO)

    @app.get("/api/health")
    def api_health():
        ok, msg, size = True, "ok", None
        try:
            queue.connection.ping()
            size = queue.count
        except Exception as e:
            ok, msg = False, f"redis error: {e.__class__.__name__}"
        return jsonify({"ok": ok, "msg": msg, "workers": settings.workers,
                        "queue": {"name": queue.name, "size": size}})

    return app


if __name__ == "__main__":
    create_app().run("127.0.0.1", 8082, debug=True)
