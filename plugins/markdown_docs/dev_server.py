"""
WSGI middleware that answers content JSON requests during `mkdocs serve`.

Requests under `/<content_dir>/` are handled in this order:

1. an existing, non-draft file is returned verbatim;
2. `.../index.json` returns the index of that directory;
3. any other `.json` path returns the matching `.md` file transformed.

Everything else, and every NotFound, goes to the wrapped application.
"""

import logging
import mimetypes
from pathlib import Path
from typing import Callable, Iterable, Optional

from plugins.markdown_docs.content import read_source, to_json, transform_file
from plugins.markdown_docs.errors import NotFound
from plugins.markdown_docs.scanner import index_directory, is_eligible, is_hidden

log = logging.getLogger("mkdocs.plugins.markdown_docs")

JSON_CONTENT_TYPE = "application/json; charset=utf-8"
INDEX_FILENAME = "index.json"

WSGIApp = Callable[[dict, Callable], Iterable[bytes]]


class DevDeliveryAdapter:
    def __init__(self, content_dir: str, root, mount_path: str = "/", debug: bool = False):
        self.prefix = "/" + content_dir.strip("/") + "/"
        self.content_root = (Path(root) / content_dir).resolve()
        self.mount_path = "/" + mount_path.strip("/") + "/" if mount_path.strip("/") else "/"
        self.debug = debug

    def wrap(self, app: WSGIApp) -> WSGIApp:
        """Return a WSGI application that tries this adapter before `app`."""

        def markdown_docs_middleware(environ, start_response):
            return self(environ, start_response, app)

        return markdown_docs_middleware

    def __call__(self, environ, start_response, next_app: WSGIApp):
        target = self._resolve_target(environ)
        if target is None:
            return next_app(environ, start_response)

        if target.is_file() and not target.name.endswith(".draft.md"):
            content_type = mimetypes.guess_type(target.name)[0] or "application/octet-stream"
            return self._respond(start_response, target.read_bytes(), content_type)

        if target.suffix != ".json":
            return next_app(environ, start_response)

        try:
            body = self.render(target)
        except NotFound as exc:
            if self.debug:
                log.debug(f"[markdown_docs] not handled: {exc}")
            return next_app(environ, start_response)
        except Exception as e:
            log.error(f"[markdown_docs] failed to serve {environ.get('PATH_INFO')}: {e}")
            raise
        return self._respond(start_response, body.encode("utf-8"), JSON_CONTENT_TYPE)

    def render(self, target: Path) -> str:
        """Produce the JSON text for a `.json` path inside the content directory."""
        if target.name == INDEX_FILENAME:
            directory = target.parent
            if not directory.is_dir():
                raise NotFound(f"no such content directory: {directory}")
            if self.debug:
                log.debug(f"[markdown_docs] indexing {directory}")
            index = index_directory(directory)
            # Only directories holding documents get an index in the build.
            if not index:
                raise NotFound(f"no documents in {directory}")
            return to_json(index)

        md_path = target.with_name(target.name[: -len(".json")] + ".md")
        if not is_eligible(md_path):
            raise NotFound(f"not an eligible markdown source: {md_path}")
        if self.debug:
            log.debug(f"[markdown_docs] transforming {md_path}")
        return to_json(transform_file(read_source(md_path)))

    def _resolve_target(self, environ) -> Optional[Path]:
        """Map the request path to a path inside the content directory, if any."""
        path = environ.get("PATH_INFO", "")
        # WSGI hands over the decoded path as latin-1; file names are utf-8.
        try:
            path = path.encode("latin-1").decode("utf-8")
        except UnicodeError:
            return None

        if self.mount_path != "/":
            if not path.startswith(self.mount_path):
                return None
            path = path[len(self.mount_path) - 1 :]

        if not path.startswith(self.prefix):
            return None
        relative = path[len(self.prefix) :]
        if not relative or any(is_hidden(part) for part in relative.split("/") if part):
            return None

        target = (self.content_root / relative).resolve()
        try:
            target.relative_to(self.content_root)
        except ValueError:
            log.warning(f"[markdown_docs] ignoring request outside content directory: {path}")
            return None
        return target

    @staticmethod
    def _respond(start_response, body: bytes, content_type: str):
        start_response(
            "200 OK",
            [("Content-Type", content_type), ("Content-Length", str(len(body)))],
        )
        return [body]
