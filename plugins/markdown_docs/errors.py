"""Errors raised while turning markdown sources into JSON documents."""


class MarkdownDocsError(Exception):
    """Base class for markdown_docs failures."""


class NotFound(MarkdownDocsError, FileNotFoundError):
    """A requested source file or directory does not exist."""


class MalformedFrontMatter(MarkdownDocsError, ValueError):
    def __init__(self, filename, reason):
        self.filename = str(filename)
        self.reason = reason
        super().__init__(f"malformed front matter in {self.filename}: {reason}")


class MarkdownParseError(MarkdownDocsError):
    def __init__(self, filename, reason):
        self.filename = str(filename)
        self.reason = reason
        super().__init__(f"failed to render markdown in {self.filename}: {reason}")


class UndecodableSource(MarkdownDocsError, ValueError):
    def __init__(self, filename, reason):
        self.filename = str(filename)
        self.reason = reason
        super().__init__(f"{self.filename} is not valid UTF-8: {reason}")
