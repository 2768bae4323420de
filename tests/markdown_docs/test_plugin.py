"""
Tests for the MkDocs lifecycle wiring of the markdown_docs plugin.
"""

import json
import subprocess
import sys
from wsgiref.util import setup_testing_defaults

import pytest
from mkdocs.exceptions import PluginError

from plugins.markdown_docs.plugin import MarkdownDocsPlugin


class FakeServer:
    """The parts of MkDocs' LiveReloadServer the plugin touches."""

    def __init__(self):
        self.watched = []
        self.app = self.serve_site

    def serve_site(self, environ, start_response):
        start_response("200 OK", [("Content-Type", "text/html")])
        return [b"<html>site</html>"]

    def get_app(self):
        return self.app

    def set_app(self, app):
        self.app = app

    def watch(self, path):
        self.watched.append(path)


def make_plugin(root, **options):
    plugin = MarkdownDocsPlugin()
    errors, warnings = plugin.load_config({"content_dir": "docs", **options})
    assert errors == []
    config = {
        "config_file_path": str(root / "mkdocs.yml"),
        "site_dir": str(root / "site"),
        "site_url": None,
    }
    plugin.on_config(config)
    return plugin, config


def get(app, path):
    environ = {"PATH_INFO": path}
    setup_testing_defaults(environ)
    statuses = []
    body = b"".join(app(environ, lambda status, headers: statuses.append(status)))
    return statuses[0], body


class TestMarkdownDocsPlugin:
    def test_defaults(self, content_root):
        plugin, _ = make_plugin(content_root)
        assert plugin.config["max_workers"] == 1
        assert plugin.config["debug"] is False
        assert plugin.content_path == (content_root / "docs").resolve()

    def test_content_dir_is_required(self):
        plugin = MarkdownDocsPlugin()
        errors, _ = plugin.load_config({})
        assert errors

    @pytest.mark.parametrize("content_dir", ["", "/abs/docs", "../docs", "docs/../../x", "."])
    def test_invalid_content_dir(self, tmp_path, content_dir):
        plugin = MarkdownDocsPlugin()
        plugin.load_config({"content_dir": content_dir})
        with pytest.raises(PluginError):
            plugin.on_config({"config_file_path": str(tmp_path / "mkdocs.yml")})

    def test_invalid_max_workers(self, tmp_path):
        plugin = MarkdownDocsPlugin()
        plugin.load_config({"content_dir": "docs", "max_workers": 0})
        with pytest.raises(PluginError):
            plugin.on_config({"config_file_path": str(tmp_path / "mkdocs.yml")})

    def test_trailing_slash_is_normalised(self, content_root):
        plugin, _ = make_plugin(content_root, content_dir="docs/")
        assert plugin.config["content_dir"] == "docs"

    def test_on_serve_wraps_app(self, content_root):
        """Test: the served app answers content JSON and defers everything else."""
        plugin, config = make_plugin(content_root)
        plugin.on_startup(command="serve", dirty=False)
        server = FakeServer()
        assert plugin.on_serve(server, config, builder=None) is server
        assert server.watched == [str((content_root / "docs").resolve())]

        status, body = get(server.get_app(), "/docs/intro.json")
        assert status == "200 OK"
        assert json.loads(body)["id"] == "intro"

        status, body = get(server.get_app(), "/index.html")
        assert body == b"<html>site</html>"

    def test_on_serve_honours_site_url_path(self, content_root):
        plugin, config = make_plugin(content_root)
        config["site_url"] = "https://example.org/handbook/"
        server = FakeServer()
        plugin.on_serve(server, config, builder=None)
        status, body = get(server.get_app(), "/handbook/docs/index.json")
        assert status == "200 OK"
        assert [e["id"] for e in json.loads(body)] == ["intro", "b", "a"]

    def test_post_build_materializes(self, content_root):
        plugin, config = make_plugin(content_root)
        plugin.on_startup(command="build", dirty=False)
        plugin.on_post_build(config)
        site = content_root / "site" / "docs"
        assert json.loads((site / "intro.json").read_text(encoding="utf-8"))["id"] == "intro"
        assert (site / "index.json").exists()
        assert (site / "guide" / "index.json").exists()
        assert (site / "guide" / "img" / "logo.png").exists()
        assert not (site / "x.draft.json").exists()

    def test_post_build_skipped_while_serving(self, content_root):
        """Test: `mkdocs serve` rebuilds write no content artifacts."""
        plugin, config = make_plugin(content_root)
        plugin.on_startup(command="serve", dirty=False)
        plugin.on_post_build(config)
        assert not (content_root / "site").exists()

    def test_post_build_missing_content_dir(self, tmp_path):
        plugin, config = make_plugin(tmp_path)
        plugin.on_startup(command="build", dirty=False)
        plugin.on_post_build(config)
        assert not (tmp_path / "site").exists()

    def test_post_build_failure_aborts(self, content_root):
        (content_root / "docs" / "broken.md").write_text("---\n[oops\n---\n", encoding="utf-8")
        plugin, config = make_plugin(content_root)
        plugin.on_startup(command="build", dirty=False)
        with pytest.raises(PluginError) as excinfo:
            plugin.on_post_build(config)
        assert "broken.md" in str(excinfo.value)

    @pytest.mark.parametrize(
        "name,source",
        [
            ("latin.md", b"# Caf\xe9\n"),
            ("tags.md", b"---\ntags: !!set {a, b}\n---\n# Tags\n"),
        ],
    )
    def test_post_build_unusable_source_aborts(self, content_root, name, source):
        """Test: undecodable files and unserialisable metadata abort with a plugin error."""
        (content_root / "docs" / name).write_bytes(source)
        plugin, config = make_plugin(content_root)
        plugin.on_startup(command="build", dirty=False)
        with pytest.raises(PluginError):
            plugin.on_post_build(config)

    def test_integration_build(self, content_root):
        """Test: Complete integration with MkDocs build."""
        site_docs = content_root / "site_docs"
        site_docs.mkdir()
        (site_docs / "index.md").write_text("# Home\n\nWelcome.", encoding="utf8")

        config_content = """
site_name: Test Site
docs_dir: site_docs
theme:
  name: mkdocs
plugins:
  - markdown_docs:
      content_dir: docs
"""
        config_file = content_root / "mkdocs.yml"
        config_file.write_text(config_content, encoding="utf8")
        site_dir = content_root / "site"

        try:
            subprocess.check_call(
                [
                    sys.executable,
                    "-m",
                    "mkdocs",
                    "build",
                    "-q",
                    "-f",
                    str(config_file),
                    "-d",
                    str(site_dir),
                ],
                cwd=str(content_root),
            )
        except subprocess.CalledProcessError:
            pytest.skip("MkDocs build failed in this environment")

        assert (site_dir / "index.html").exists()
        index = json.loads((site_dir / "docs" / "index.json").read_text(encoding="utf8"))
        assert [entry["id"] for entry in index] == ["intro", "b", "a"]
        assert (site_dir / "docs" / "guide" / "setup.json").exists()
