"""
Data model shared by the history walker, the working-tree scanner and the
chunk consumers.
"""
from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Optional, Sequence, Union

PathPredicate = Callable[[str], bool]

UNSTAGED = "unstaged"


def _pass_all(_path: str) -> bool:
    return True


class SourceType(str, enum.Enum):
    GIT = "git"


class LineOp(enum.Enum):
    ADD = "+"
    DELETE = "-"
    CONTEXT = " "


@dataclass(frozen=True)
class ScanOptions:
    """Bounds for one history walk.

    ``max_depth`` of 0 means unbounded. ``base_revision`` is a full commit
    sha; the walk stops before reaching it.
    """

    start_revision: Optional[str] = None
    base_revision: Optional[str] = None
    max_depth: int = 0
    path_filter: PathPredicate = _pass_all

    def __post_init__(self) -> None:
        if self.max_depth < 0:
            raise ValueError("max_depth must be >= 0")


@dataclass(frozen=True)
class DiffLine:
    op: LineOp
    text: bytes


@dataclass
class DiffFragment:
    """A contiguous hunk of one file's patch."""

    start_line_in_new_file: int
    lines: list[DiffLine] = field(default_factory=list)

    def added_lines(self) -> list[bytes]:
        return [line.text for line in self.lines if line.op is LineOp.ADD]


@dataclass
class FileDiff:
    path: str
    fragments: list[DiffFragment] = field(default_factory=list)


@dataclass
class CommitRecord:
    sha: str
    author_email: str
    author_date: Optional[datetime]
    changed_files: list[FileDiff] = field(default_factory=list)


@dataclass(frozen=True)
class ProvenanceMetadata:
    file: str
    author_email: str
    commit_or_tag: str
    timestamp: str
    repository: str
    line_number: int

    def to_dict(self) -> dict[str, Union[str, int]]:
        return {
            "file": self.file,
            "email": self.author_email,
            "commit": self.commit_or_tag,
            "timestamp": self.timestamp,
            "repository": self.repository,
            "line": self.line_number,
        }


@dataclass(frozen=True)
class Chunk:
    """One provenance-tagged unit of content handed to the secret scanner."""

    source_name: str
    source_id: int
    source_type: SourceType
    data: bytes
    metadata: ProvenanceMetadata
    verify: bool = False


def utf8(value: Union[str, bytes, None]) -> str:
    """Return ``value`` as valid UTF-8 text, replacing undecodable sequences."""
    if value is None:
        return ""
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    return value.encode("utf-8", errors="replace").decode("utf-8")


def build_metadata(
    file: Union[str, bytes],
    email: Union[str, bytes, None],
    commit: str,
    timestamp: str,
    repository: str,
    line: int,
) -> ProvenanceMetadata:
    return ProvenanceMetadata(
        file=utf8(file),
        author_email=utf8(email),
        commit_or_tag=utf8(commit),
        timestamp=utf8(timestamp),
        repository=utf8(repository),
        line_number=line,
    )


MetadataFactory = Callable[[str, str, str, str, str, int], ProvenanceMetadata]


def join_added_lines(lines: Sequence[bytes]) -> bytes:
    """Concatenate added lines, one per output line, flattening embedded newlines."""
    return b"".join(line.replace(b"\n", b" ") + b"\n" for line in lines)
