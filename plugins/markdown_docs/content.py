"""
Markdown source -> JSON content helpers shared by the dev server and the build.

Both delivery paths call only the functions in this module to derive their
output, so a document served during `mkdocs serve` and the same document
written during `mkdocs build` serialise to the same bytes.
"""

import datetime
import json
import re
from dataclasses import dataclass, field
from pathlib import Path, PurePath
from typing import Any, Dict, Iterable, List, Tuple, Union

import markdown
import yaml
from pymdownx.slugs import slugify as pymdownx_slugify

from plugins.markdown_docs.errors import (
    MalformedFrontMatter,
    MarkdownParseError,
    NotFound,
    UndecodableSource,
)

FM_PATTERN = re.compile(
    r"\A---[ \t]*\r?\n(.*?)^---[ \t]*(?:\r?\n|\Z)", re.DOTALL | re.MULTILINE
)

# Parser configuration is fixed for the life of the process.
MARKDOWN_EXTENSIONS = ["toc", "footnotes"]
MARKDOWN_EXTENSION_CONFIGS = {
    "toc": {"separator": "-"},
}

JSON_INDENT = 2

Metadata = Dict[str, Any]


@dataclass(frozen=True)
class SourceFile:
    filename: str
    content: str


@dataclass(frozen=True)
class TransformedDocument:
    id: str
    metadata: Metadata = field(default_factory=dict)
    content: str = ""

    def to_dict(self) -> dict:
        return {"id": self.id, "data": self.metadata, "content": self.content}


@dataclass(frozen=True)
class IndexEntry:
    id: str
    metadata: Metadata = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {"id": self.id, "data": self.metadata}


def read_source(path: Union[str, Path]) -> SourceFile:
    """Read a markdown source from disk, mapping a missing file to NotFound."""
    try:
        text = Path(path).read_text(encoding="utf-8")
    except FileNotFoundError as exc:
        raise NotFound(f"no such source file: {path}") from exc
    except UnicodeDecodeError as exc:
        raise UndecodableSource(path, exc) from exc
    return SourceFile(filename=str(path), content=text)


def filename_to_id(filename: Union[str, PurePath]) -> str:
    """Drop the directory part and a trailing `.md` from a file name."""
    name = PurePath(filename).name
    if name.endswith(".md"):
        return name[: -len(".md")]
    return name


def split_front_matter(source_text: str, filename: str = "<string>") -> Tuple[Metadata, str]:
    """
    Return (front_matter_dict, body_text). If no FM, dict={} and body=source_text.

    Raises MalformedFrontMatter when the header block is not valid YAML or
    does not hold a mapping.
    """
    m = FM_PATTERN.match(source_text)
    if not m:
        return {}, source_text
    try:
        fm = yaml.safe_load(m.group(1))
    except yaml.YAMLError as exc:
        raise MalformedFrontMatter(filename, exc) from exc
    if fm is None:
        fm = {}
    if not isinstance(fm, dict):
        raise MalformedFrontMatter(
            filename, f"expected a mapping, got {type(fm).__name__}"
        )
    return fm, source_text[m.end() :]


def github_slugify():
    """
    Return a heading slugifier that numbers repeats the way GitHub does.

    `A - B` becomes `a---b`; a second `One` becomes `one-1`. The returned
    function keeps the ids it has handed out, so build one per document.
    """
    base = pymdownx_slugify(case="lower")
    occurrences: Dict[str, int] = {}

    def slugify(text, sep):
        original = base(text, sep)
        slug = original
        while slug in occurrences:
            occurrences[original] += 1
            slug = f"{original}-{occurrences[original]}"
        occurrences[slug] = 0
        return slug

    return slugify


def render_markdown(body: str, filename: str = "<string>") -> str:
    configs = {name: dict(options) for name, options in MARKDOWN_EXTENSION_CONFIGS.items()}
    configs["toc"]["slugify"] = github_slugify()
    md = markdown.Markdown(
        extensions=MARKDOWN_EXTENSIONS,
        extension_configs=configs,
    )
    try:
        return md.convert(body)
    except Exception as exc:
        raise MarkdownParseError(filename, exc) from exc


def transform_file(source: SourceFile) -> TransformedDocument:
    """Parse front matter and render the body of a single markdown file."""
    metadata, body = split_front_matter(source.content, source.filename)
    content = render_markdown(body, source.filename)
    return TransformedDocument(
        id=filename_to_id(source.filename), metadata=metadata, content=content
    )


def files_to_index(sources: Iterable[SourceFile]) -> List[IndexEntry]:
    """
    Build a directory index from the front matter of each source.

    Bodies are never rendered here. Entries are ordered by id, descending;
    entries with equal ids keep their input order.
    """
    entries = [
        IndexEntry(
            id=filename_to_id(source.filename),
            metadata=split_front_matter(source.content, source.filename)[0],
        )
        for source in sources
    ]
    return sorted(entries, key=lambda entry: entry.id, reverse=True)


def _json_default(value):
    if isinstance(value, (datetime.date, datetime.datetime, datetime.time)):
        return value.isoformat()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def to_json(payload) -> str:
    """Serialise a document, an index entry or an index to the shared JSON form."""
    if isinstance(payload, (TransformedDocument, IndexEntry)):
        payload = payload.to_dict()
    elif isinstance(payload, list):
        payload = [
            item.to_dict() if isinstance(item, IndexEntry) else item
            for item in payload
        ]
    return json.dumps(
        payload, ensure_ascii=False, indent=JSON_INDENT, default=_json_default
    )
