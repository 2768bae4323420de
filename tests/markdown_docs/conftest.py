import pytest

LOGO_BYTES = b"\x89PNG\r\n\x1a\n\x00fake-image"

CONTENT_TREE = {
    "intro.md": "---\ntitle: Intro\n---\n# Hello",
    "a.md": "---\n---\n",
    "b.md": "---\n---\n",
    "x.draft.md": "---\ntitle: Draft\n---\n# Not yet",
    "notes.txt": "plain notes\n",
    "guide/setup.md": "---\ntitle: Setup\norder: 2\n---\n## Install\n\nRun it.[^1]\n\n[^1]: Really.\n",
    "guide/faq.md": "---\ntitle: FAQ\ndate: 2024-03-01\n---\nAsk away.\n",
    "guide/wip/y.draft.md": "---\ntitle: Hidden\n---\n",
    ".hidden/secret.md": "---\ntitle: Secret\n---\n",
}


@pytest.fixture
def content_root(tmp_path):
    """A project root holding a `docs/` content directory."""
    docs = tmp_path / "docs"
    for rel, text in CONTENT_TREE.items():
        path = docs / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
    logo = docs / "guide" / "img" / "logo.png"
    logo.parent.mkdir(parents=True)
    logo.write_bytes(LOGO_BYTES)
    return tmp_path
