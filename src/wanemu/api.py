"""
HTTP API for the WAN emulation controller.

JSON routes under /api let a browser front-end connect to hosts, list
their interfaces and apply or clear impairments.
"""

import logging
from typing import Optional

from flask import Flask, jsonify, request

from .exceptions import (
    ConnectionFailedError,
    InvalidStateError,
    PlanAbortedError,
    ProfileNotFoundError,
    SessionNotFoundError,
    WanEmuError,
)
from .sessions import SessionRegistry
from .state import ImpairmentState

logger = logging.getLogger(__name__)


def _error(message: str, status: int, **extra):
    return jsonify({"error": message, **extra}), status


class BadRequestBody(Exception):
    """Raised when a request body is not a JSON object."""


def _body() -> dict:
    body = request.get_json(silent=True)
    if body is None:
        return {}
    if not isinstance(body, dict):
        raise BadRequestBody("Request body must be a JSON object")
    return body


def create_app(
    registry: Optional[SessionRegistry] = None,
    static_dir: Optional[str] = None,
) -> Flask:
    """
    Build the Flask application.

    Args:
        registry: Session registry backing the routes. A fresh one
            (SSH, no profiles) is created if omitted.
        static_dir: Folder with the front-end, served at "/".
    """
    app = Flask(__name__, static_folder=static_dir, static_url_path="")
    registry = registry if registry is not None else SessionRegistry()

    @app.errorhandler(BadRequestBody)
    def _bad_body(e):
        return _error(str(e), 400)

    @app.errorhandler(SessionNotFoundError)
    def _not_connected(e):
        return _error("Not connected", 404)

    @app.errorhandler(ProfileNotFoundError)
    def _no_profile(e):
        return _error(str(e), 404)

    @app.errorhandler(InvalidStateError)
    def _invalid_state(e):
        return _error(str(e), 400)

    @app.errorhandler(PlanAbortedError)
    def _aborted(e):
        return _error(str(e), 502, results=[r.to_dict() for r in e.results])

    @app.errorhandler(WanEmuError)
    def _failed(e):
        logger.error(f"Request failed: {e}")
        return _error(str(e), 500)

    if static_dir:

        @app.route("/")
        def index():
            return app.send_static_file("index.html")

    @app.route("/api/connect", methods=["POST"])
    def connect():
        body = _body()
        session_id, host = body.get("id"), body.get("host")
        username, password = body.get("username"), body.get("password")
        if not session_id or not host or not username or not password:
            return _error("Missing required fields", 400)

        try:
            port = int(body.get("port") or 22)
        except (TypeError, ValueError):
            return _error(f"Invalid port: {body.get('port')!r}", 400)

        try:
            registry.connect(
                session_id,
                host=host,
                username=username,
                password=password,
                port=port,
            )
        except ConnectionFailedError as e:
            return _error(str(e), 500)
        return jsonify({"success": True})

    @app.route("/api/disconnect", methods=["POST"])
    def disconnect():
        body = _body()
        if body.get("id"):
            registry.disconnect(body["id"])
        return jsonify({"success": True})

    @app.route("/api/interfaces/<session_id>")
    def interfaces(session_id):
        host = registry.get(session_id)
        return jsonify({"interfaces": [i.to_dict() for i in host.list_interfaces()]})

    @app.route("/api/profiles")
    def profiles():
        return jsonify(
            {"profiles": {name: p.to_dict() for name, p in registry.profiles.items()}}
        )

    @app.route("/api/apply", methods=["POST"])
    def apply():
        body = _body()
        host = registry.get(body.get("id"))
        interface = body.get("iface")
        if not interface:
            return _error("Missing required fields", 400)

        if body.get("profile"):
            results = host.apply_profile(interface, body["profile"])
        else:
            results = host.apply(interface, ImpairmentState.from_dict(body))
        return jsonify({"success": True, "results": [r.to_dict() for r in results]})

    @app.route("/api/clear", methods=["POST"])
    def clear():
        body = _body()
        host = registry.get(body.get("id"))
        interface = body.get("iface")
        if not interface:
            return _error("Missing required fields", 400)

        host.clear(interface)
        return jsonify({"success": True})

    return app
