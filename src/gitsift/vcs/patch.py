"""
Streaming parser for ``git log --patch`` output.

Each commit starts with a header line produced by :data:`LOG_FORMAT`
(NUL-separated sha, author email and strict ISO author date). Hunk bodies
are consumed by their declared line counts, so content that happens to look
like a header inside a hunk is never misread.
"""
from __future__ import annotations

import codecs
import re
from datetime import datetime
from typing import Iterable, Iterator, Optional

from ..models import CommitRecord, DiffFragment, DiffLine, FileDiff, LineOp

LOG_FORMAT = "%x00%H%x00%ae%x00%aI"

_HUNK_HEADER = re.compile(rb"^@@ -(\d+)(?:,(\d+))? \+(\d+)(?:,(\d+))? @@")
_LINE_OPS = {b"+": LineOp.ADD, b"-": LineOp.DELETE, b" ": LineOp.CONTEXT}
_DEV_NULL = b"/dev/null"


def _unquote(token: bytes) -> bytes:
    """Undo git's C-style quoting of unusual path names."""
    if len(token) >= 2 and token.startswith(b'"') and token.endswith(b'"'):
        return codecs.escape_decode(token[1:-1])[0]
    return token


def _decode_path(raw: bytes, prefix: bytes) -> str:
    raw = _unquote(raw.rstrip(b"\t"))
    if raw == _DEV_NULL:
        return ""
    if raw.startswith(prefix):
        raw = raw[len(prefix):]
    return raw.decode("utf-8", errors="replace")


def _path_from_diff_header(line: bytes) -> str:
    rest = line[len(b"diff --git "):]
    if rest.endswith(b'"'):
        index = rest.rfind(b' "b/')
    else:
        index = rest.rfind(b" b/")
    if index < 0:
        return ""
    return _decode_path(rest[index + 1:], b"b/")


def _parse_header(line: bytes) -> CommitRecord:
    fields = line[1:].split(b"\x00")
    sha = fields[0].decode("ascii", errors="replace") if fields else ""
    email = fields[1].decode("utf-8", errors="replace") if len(fields) > 1 else ""
    when: Optional[datetime] = None
    if len(fields) > 2 and fields[2]:
        try:
            when = datetime.fromisoformat(fields[2].decode("ascii"))
        except ValueError:
            when = None
    return CommitRecord(sha=sha, author_email=email, author_date=when)


def parse_log(stream: Iterable[bytes]) -> Iterator[CommitRecord]:
    """Turn raw ``git log -p`` lines into :class:`CommitRecord` objects lazily."""
    commit: Optional[CommitRecord] = None
    current: Optional[FileDiff] = None
    fragment: Optional[DiffFragment] = None
    old_left = new_left = 0

    for raw in stream:
        line = raw[:-1] if raw.endswith(b"\n") else raw

        if fragment is not None and (old_left > 0 or new_left > 0):
            marker = line[:1]
            op = _LINE_OPS.get(marker)
            if op is not None:
                fragment.lines.append(DiffLine(op=op, text=line[1:]))
                if op is not LineOp.ADD:
                    old_left -= 1
                if op is not LineOp.DELETE:
                    new_left -= 1
                continue
            if marker == b"\\":
                continue
            # truncated hunk
            old_left = new_left = 0

        if line.startswith(b"\x00"):
            if commit is not None:
                yield commit
            commit = _parse_header(line)
            current = None
            fragment = None
            continue
        if commit is None:
            continue

        if line.startswith(b"diff --git "):
            current = FileDiff(path=_path_from_diff_header(line))
            commit.changed_files.append(current)
            fragment = None
            continue
        if current is None:
            continue

        if line.startswith(b"+++ "):
            current.path = _decode_path(line[4:], b"b/")
        elif line.startswith(b"rename to "):
            current.path = _decode_path(line[len(b"rename to "):], b"")
        elif line.startswith(b"deleted file mode"):
            current.path = ""
        else:
            match = _HUNK_HEADER.match(line)
            if match is None:
                continue
            old_count, new_start, new_count = match.group(2), match.group(3), match.group(4)
            fragment = DiffFragment(start_line_in_new_file=int(new_start))
            old_left = int(old_count) if old_count is not None else 1
            new_left = int(new_count) if new_count is not None else 1
            current.fragments.append(fragment)

    if commit is not None:
        yield commit
