from __future__ import annotations


def display_name(name: str) -> str:
    # File names undecodable as UTF-8 carry surrogate escapes; make them printable.
    return name.encode("utf-8", "surrogateescape").decode("utf-8", "replace")


class PipelineError(Exception):
    """Base class for every failure the conversion pipeline reports to its caller."""

    kind = "pipeline"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def describe(self) -> str:
        return f"{self.kind}: {self.message}"


class FolderReadError(PipelineError):
    kind = "folder-read"


class EncodeError(PipelineError):
    kind = "encode"

    def __init__(self, filename: str, reason: str) -> None:
        super().__init__(f"Failed to encode {display_name(filename)}: {reason}")
        self.filename = filename
        self.reason = reason


class FileSystemError(PipelineError):
    kind = "filesystem"


class ServerStartError(PipelineError):
    kind = "server-start"
