"""
Skyblock armour sniper web UI + JSON API (lightweight HTTP server + Jinja templates).

Routes:
* "/"             – Item search (name, colour + tolerance, piece)
* "/sets"         – Set finder (owner holds a full set in one colour)
* "/favourites"   – Items starred in the browser (localStorage), fetched by uuid
* "/api/search"   – JSON item search
* "/api/sets"     – JSON set search
* "/api/old"      – JSON search over the legacy old-dragon CSV export
* "/api/health"   – DB diagnostics
* "/api/ping"     – Row count + sample row

Architecture:
* HTML is rendered with Jinja templates in src/app/templates; pages call the JSON API.
* Query strings are parsed in app.params; services are wired per request in app.di.
* Every JSON answer is ``{"ok": true, ...}`` or ``{"ok": false, "error": ...}``.

Dependencies:
* Standard library + Jinja2 + pydantic. No Flask/WSGI; runs via BaseHTTPRequestHandler.

Usage:
    python3 src/app/server.py
"""

from __future__ import annotations

import json
import logging
import sys
from contextlib import closing
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from pathlib import Path
from urllib.parse import parse_qs, urlparse

from jinja2 import Environment, FileSystemLoader, select_autoescape  # type: ignore

# Ensure repo root is on sys.path when running as `python3 src/app/server.py`
REPO_ROOT = Path(__file__).resolve().parents[2]
if str(REPO_ROOT / "src") not in sys.path:
    sys.path.insert(0, str(REPO_ROOT / "src"))

from app.di import (  # noqa: E402
    get_legacy_search_service,
    search_service_for_conn,
    set_search_service_for_conn,
)
from app.params import parse_legacy_params, parse_search_params, parse_set_params  # noqa: E402
from app.settings import get_settings  # noqa: E402
from core.colors import NIBBLE_MAX_DISTANCE  # noqa: E402
from core.dtos import ErrorResponse  # noqa: E402
from core.errors import BadRequestError, DatasetNotFoundError  # noqa: E402
from infra.db.conn import get_conn  # noqa: E402
from infra.db.items_db import init_db  # noqa: E402
from infra.db.repositories.items_repo import ItemsRepo  # noqa: E402

logger = logging.getLogger(__name__)

_BASE_DIR = Path(__file__).resolve().parent
_TEMPLATE_DIR = (_BASE_DIR / "templates").resolve()
_STATIC_DIR = (_BASE_DIR / "static").resolve()

_jinja_env = Environment(
    loader=FileSystemLoader(str(_TEMPLATE_DIR)),
    autoescape=select_autoescape(["html", "xml"]),
    enable_async=False,
)


def _url_for(endpoint: str, **values) -> str:
    """Very small url_for shim for templates."""
    if endpoint == "static":
        fn = str(values.get("filename", "")).lstrip("/")
        return f"/static/{fn}"
    mapping = {
        "index": "/",
        "sets": "/sets",
        "favourites": "/favourites",
        "api_search": "/api/search",
        "api_sets": "/api/sets",
    }
    return mapping.get(endpoint, "/")


def _render_template(name: str, **context) -> str:
    tmpl = _jinja_env.get_template(name)
    context.setdefault("url_for", _url_for)
    context.setdefault("max_tolerance", NIBBLE_MAX_DISTANCE)
    return tmpl.render(**context)


_PAGES = {
    "/": ("index.html", "index"),
    "/sets": ("sets.html", "sets"),
    "/favourites": ("favourites.html", "favourites"),
}


# --------------------------------------------------------------------------- request-handler
class Handler(BaseHTTPRequestHandler):
    server_version = "SkyblockSniper/1.0"

    def do_GET(self):  # noqa: N802
        try:
            # --- Static files ---
            if self.path.startswith("/static/"):
                return self._serve_static()

            # --- JSON API (GET) ---
            if self.path.startswith("/api/"):
                return self._handle_api_get()

            # --- HTML pages ---
            path = urlparse(self.path).path.rstrip("/") or "/"
            page = _PAGES.get(path)
            if page is None:
                return self._not_found()
            template, active = page
            self._send_ok(_render_template(template, active=active))
        except Exception as exc:  # pylint: disable=broad-except
            logger.exception("Unhandled error for GET %s", self.path)
            self.send_response(500)
            self.end_headers()
            self.wfile.write(f"Internal error:\n{exc}".encode())

    def log_message(self, format, *args):  # noqa: A002
        logger.info("%s - %s", self.address_string(), format % args)

    # ------------------------------ JSON helpers
    def _send_json(self, status: int, payload) -> None:
        data = json.dumps(payload).encode("utf-8")
        self.send_response(status)
        self.send_header("Content-Type", "application/json; charset=utf-8")
        self.send_header("Content-Length", str(len(data)))
        self.send_header("Cache-Control", "no-store")
        self.end_headers()
        self.wfile.write(data)

    def _send_error_json(self, status: int, message: str) -> None:
        self._send_json(status, ErrorResponse(error=message).to_json_dict())

    def _serve_static(self):
        # Map /static/... to files under _STATIC_DIR
        rel = urlparse(self.path).path[len("/static/") :]
        safe_rel = rel.lstrip("/").replace("..", "")
        file_path = (_STATIC_DIR / safe_rel).resolve()
        # Ensure path is inside static dir
        if not str(file_path).startswith(str(_STATIC_DIR)):
            self.send_response(403)
            self.end_headers()
            self.wfile.write(b"Forbidden")
            return
        if not file_path.is_file():
            return self._not_found()

        # Content types (minimal)
        if file_path.suffix == ".js":
            ctype = "application/javascript; charset=utf-8"
        elif file_path.suffix == ".css":
            ctype = "text/css; charset=utf-8"
        else:
            ctype = "application/octet-stream"

        data = file_path.read_bytes()
        self.send_response(200)
        self.send_header("Content-Type", ctype)
        self.send_header("Content-Length", str(len(data)))
        self.end_headers()
        self.wfile.write(data)

    # ------------------------------ API GET router
    def _handle_api_get(self):
        parsed = urlparse(self.path)
        path = parsed.path.rstrip("/")
        qs = parse_qs(parsed.query, keep_blank_values=True)
        settings = get_settings()

        try:
            if path == "/api/search":
                criteria = parse_search_params(qs, settings)
                with closing(get_conn(settings)) as conn:
                    resp = search_service_for_conn(conn, settings).search(criteria)
                return self._send_json(200, resp.to_json_dict())

            if path == "/api/sets":
                criteria = parse_set_params(qs, settings)
                with closing(get_conn(settings)) as conn:
                    resp = set_search_service_for_conn(conn, settings).find_sets(criteria)
                return self._send_json(200, resp.to_json_dict())

            if path == "/api/old":
                criteria = parse_legacy_params(qs, settings)
                resp = get_legacy_search_service(settings).search(criteria)
                return self._send_json(200, resp.to_json_dict())

            if path == "/api/health":
                return self._serve_health()

            if path == "/api/ping":
                with closing(get_conn(settings)) as conn:
                    repo = ItemsRepo(conn)
                    sample = repo.newest(limit=1)
                    return self._send_json(
                        200,
                        {"ok": True, "count": repo.total(), "sample": dict(sample[0]) if sample else None},
                    )
        except BadRequestError as e:
            return self._send_error_json(400, str(e))
        except DatasetNotFoundError as e:
            logger.error("%s", e)
            return self._send_error_json(500, str(e))
        except Exception:  # pylint: disable=broad-except
            logger.exception("Unhandled error for GET %s", self.path)
            return self._send_error_json(500, "Internal Server Error")

        return self._send_error_json(404, "Not Found")

    def _serve_health(self):
        settings = get_settings()
        db_path = str(settings.db_path)
        db_exists = settings.db_path.exists()
        try:
            with closing(get_conn(settings)) as conn:
                repo = ItemsRepo(conn)
                count = repo.total()
                sample = [dict(r) for r in repo.newest(limit=3)]
        except Exception as e:  # pylint: disable=broad-except
            logger.exception("Health check failed")
            return self._send_json(
                500, {"ok": False, "error": str(e), "dbPath": db_path, "dbExists": db_exists}
            )
        return self._send_json(
            200,
            {
                "ok": True,
                "dbPath": db_path,
                "dbExists": db_exists,
                "readOnly": settings.read_only,
                "itemsCount": count,
                "sample": sample,
            },
        )

    def _not_found(self):
        self.send_response(404)
        self.end_headers()
        self.wfile.write(b"Not Found")

    def _send_ok(self, html_doc: str):
        html_bytes = html_doc.encode()
        self.send_response(200)
        self.send_header("Content-Type", "text/html; charset=utf-8")
        self.send_header("Content-Length", str(len(html_bytes)))
        self.end_headers()
        self.wfile.write(html_bytes)


# --------------------------------------------------------------------------- bootstrap
def make_server(host: str, port: int) -> ThreadingHTTPServer:
    settings = get_settings()
    if not settings.read_only:
        with closing(get_conn(settings)) as conn:
            init_db(conn)
    return ThreadingHTTPServer((host, port), Handler)


def main():
    settings = get_settings()
    logging.basicConfig(
        level=logging.DEBUG if settings.debug else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    httpd = make_server(settings.host, settings.port)
    logger.info("Serving on http://%s:%s  – Ctrl+C to quit", settings.host, settings.port)
    try:
        httpd.serve_forever()
    except KeyboardInterrupt:
        logger.info("Stopping…")
    finally:
        httpd.server_close()


if __name__ == "__main__":
    main()
