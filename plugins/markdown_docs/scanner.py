"""Content directory discovery for the documents and assets profiles."""

import fnmatch
import os
from dataclasses import dataclass
from pathlib import Path
from typing import List, Tuple, Union

from plugins.markdown_docs.content import IndexEntry, files_to_index, read_source


@dataclass(frozen=True)
class ScanProfile:
    """File name patterns a scan keeps (include) and then drops (exclude)."""

    name: str
    include: Tuple[str, ...]
    exclude: Tuple[str, ...] = ()

    def matches(self, filename: str) -> bool:
        if not any(fnmatch.fnmatchcase(filename, pat) for pat in self.include):
            return False
        return not any(fnmatch.fnmatchcase(filename, pat) for pat in self.exclude)


DOCUMENTS = ScanProfile("documents", include=("*.md",), exclude=("*.draft.md",))
ASSETS = ScanProfile("assets", include=("*",), exclude=("*.md",))


def is_eligible(path: Union[str, Path]) -> bool:
    """True for markdown sources that are not drafts."""
    return DOCUMENTS.matches(Path(path).name)


def is_hidden(name: str) -> bool:
    return name.startswith(".")


def scan(content_dir: Union[str, Path], profile: ScanProfile, recursive: bool = True) -> List[Path]:
    """
    Collect absolute paths of files under `content_dir` that match `profile`.

    Hidden files and directories are skipped. With `recursive=False` only the
    direct children of `content_dir` are considered. A missing directory
    yields an empty list.
    """
    root = Path(content_dir).resolve()
    if not root.is_dir():
        return []

    results = []
    for current, dirs, files in os.walk(root):
        dirs[:] = [d for d in dirs if not is_hidden(d)] if recursive else []
        for file in files:
            if is_hidden(file) or not profile.matches(file):
                continue
            results.append(Path(current) / file)
    return sorted(results)


def index_directory(dir_path: Union[str, Path]) -> List[IndexEntry]:
    """Read the eligible files directly inside `dir_path` and index them."""
    sources = [read_source(path) for path in scan(dir_path, DOCUMENTS, recursive=False)]
    return files_to_index(sources)
