"""
Writes every JSON document, every directory index and every non-markdown
asset of a content directory into the build output.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import Dict, List, Union

from plugins.markdown_docs.content import read_source, to_json, transform_file
from plugins.markdown_docs.scanner import ASSETS, DOCUMENTS, index_directory, scan

log = logging.getLogger("mkdocs.plugins.markdown_docs")

INDEX_FILENAME = "index.json"

Source = Union[str, bytes]


class SiteDirEmitter:
    """Writes emitted artifacts below the build output directory."""

    def __init__(self, site_dir):
        self.site_dir = Path(site_dir)

    def emit(self, file_name: str, source: Source) -> None:
        out_path = self.site_dir / file_name
        out_path.parent.mkdir(parents=True, exist_ok=True)
        data = source.encode("utf-8") if isinstance(source, str) else source
        out_path.write_bytes(data)


class MemoryEmitter:
    """Collects artifacts in a dict keyed by file name, as bytes."""

    def __init__(self):
        self.files: Dict[str, bytes] = {}

    def emit(self, file_name: str, source: Source) -> None:
        self.files[file_name] = source.encode("utf-8") if isinstance(source, str) else source


@dataclass
class MaterializeReport:
    documents: int = 0
    indexes: int = 0
    assets: int = 0


class BuildMaterializer:
    """
    Materialize the content directory through an emitter.

    `content_dir` is the configured name, used as the prefix of every
    emitted file name; `root` is the directory it is relative to.
    """

    def __init__(self, content_dir: str, root, emitter, max_workers: int = 1, debug: bool = False):
        self.prefix = PurePosixPath(content_dir.strip("/"))
        self.content_root = (Path(root) / content_dir).resolve()
        self.emitter = emitter
        self.max_workers = max_workers
        self.debug = debug

    def _artifact_name(self, relative: PurePosixPath) -> str:
        return str(self.prefix / relative)

    def _relative(self, path: Path) -> PurePosixPath:
        return PurePosixPath(path.relative_to(self.content_root).as_posix())

    def run(self) -> MaterializeReport:
        report = MaterializeReport()
        documents = scan(self.content_root, DOCUMENTS)

        # Documents
        for path, payload in zip(documents, self._transform_all(documents)):
            relative = self._relative(path).with_suffix(".json")
            self.emitter.emit(self._artifact_name(relative), payload)
            report.documents += 1
            if self.debug:
                log.debug(f"[markdown_docs] wrote {self._artifact_name(relative)}")

        # Directory indexes
        directories = sorted({self._relative(path).parent for path in documents})
        for directory in directories:
            index = index_directory(self.content_root / directory)
            self.emitter.emit(self._artifact_name(directory / INDEX_FILENAME), to_json(index))
            report.indexes += 1
            if self.debug:
                log.debug(f"[markdown_docs] indexed {directory} ({len(index)} entries)")

        # Everything that is not a markdown source
        for path in scan(self.content_root, ASSETS):
            self.emitter.emit(self._artifact_name(self._relative(path)), path.read_bytes())
            report.assets += 1

        return report

    def _transform_all(self, documents: List[Path]):
        """Yield document JSON in scan order; the first failure is raised."""
        def work(path):
            return to_json(transform_file(read_source(path)))

        if self.max_workers <= 1:
            for path in documents:
                yield work(path)
            return

        with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
            futures = [pool.submit(work, path) for path in documents]
            try:
                for future in futures:
                    yield future.result()
            finally:
                for future in futures:
                    future.cancel()
