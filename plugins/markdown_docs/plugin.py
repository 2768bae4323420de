import logging
from pathlib import Path, PurePosixPath
from urllib.parse import urlsplit

from mkdocs.config import config_options as c
from mkdocs.exceptions import PluginError
from mkdocs.plugins import BasePlugin

from plugins.markdown_docs.dev_server import DevDeliveryAdapter
from plugins.markdown_docs.errors import MarkdownDocsError
from plugins.markdown_docs.materializer import BuildMaterializer, SiteDirEmitter

log = logging.getLogger("mkdocs.plugins.markdown_docs")


class MarkdownDocsPlugin(BasePlugin):
    """
    Publishes a directory of markdown files as JSON.

    `mkdocs serve` answers `/<content_dir>/**.json` requests on the fly;
    `mkdocs build` writes the same JSON files, one `index.json` per directory
    and every non-markdown asset under `site_dir/<content_dir>`.

    Configuration options:
    - content_dir (str): Content directory, relative to mkdocs.yml. Also the URL
      and output prefix.
    - max_workers (int): Threads used to transform documents during a build.
    - debug (bool): Log every file handled.
    """

    config_scheme = (
        ("content_dir", c.Type(str, required=True)),
        ("max_workers", c.Type(int, default=1)),
        ("debug", c.Type(bool, default=False)),
    )

    def __init__(self):
        super().__init__()
        self.command = None
        self.project_root = None

    @property
    def content_path(self) -> Path:
        return (self.project_root / self.config["content_dir"]).resolve()

    def on_startup(self, *, command, dirty):
        self.command = command

    def on_config(self, config):
        content_dir = self.config["content_dir"].strip()
        rel = PurePosixPath(content_dir.strip("/"))
        if not content_dir or content_dir.startswith("/") or ".." in rel.parts or str(rel) == ".":
            raise PluginError(
                f"[markdown_docs] content_dir must be a relative path inside the project, got '{content_dir}'"
            )
        if self.config["max_workers"] < 1:
            raise PluginError("[markdown_docs] max_workers must be at least 1")
        self.config["content_dir"] = str(rel)

        config_file = config["config_file_path"]
        self.project_root = Path(config_file).resolve().parent if config_file else Path.cwd()

        if not self.content_path.is_dir():
            log.warning(f"[markdown_docs] content directory '{self.content_path}' not found")
        return config

    def on_serve(self, server, config, builder):
        mount_path = urlsplit(config["site_url"] or "/").path or "/"
        adapter = DevDeliveryAdapter(
            self.config["content_dir"],
            self.project_root,
            mount_path=mount_path,
            debug=self.config["debug"],
        )
        server.set_app(adapter.wrap(server.get_app()))
        if self.content_path.is_dir():
            server.watch(str(self.content_path))
        log.info(f"[markdown_docs] serving JSON for /{self.config['content_dir']}/")
        return server

    def on_post_build(self, config):
        # The dev server answers content requests itself.
        if self.command == "serve":
            return
        if not self.content_path.is_dir():
            log.warning(f"[markdown_docs] nothing to build; '{self.content_path}' not found")
            return

        materializer = BuildMaterializer(
            self.config["content_dir"],
            self.project_root,
            SiteDirEmitter(config["site_dir"]),
            max_workers=self.config["max_workers"],
            debug=self.config["debug"],
        )
        try:
            report = materializer.run()
        except (MarkdownDocsError, OSError, ValueError, TypeError) as exc:
            raise PluginError(f"[markdown_docs] build aborted: {exc}") from exc

        log.info(
            f"[markdown_docs] wrote {report.documents} documents, {report.indexes} indexes "
            f"and {report.assets} assets to {Path(config['site_dir']) / self.config['content_dir']}"
        )
