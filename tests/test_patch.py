from gitsift.models import LineOp
from gitsift.vcs.patch import parse_log


def _lines(text: bytes) -> list:
    return text.splitlines(keepends=True)


LOG = (
    b"\x00" + b"a" * 40 + b"\x00dev@example.com\x002024-03-01T10:00:00+01:00\n"
    b"\n"
    b"diff --git a/config.txt b/config.txt\n"
    b"index 111..222 100644\n"
    b"--- a/config.txt\n"
    b"+++ b/config.txt\n"
    b"@@ -2,1 +2,2 @@ header context\n"
    b"-old=1\n"
    b"+new=1\n"
    b"+secret=ABC\n"
    b"@@ -9 +10,0 @@\n"
    b"-gone\n"
    b"diff --git a/removed.txt b/removed.txt\n"
    b"deleted file mode 100644\n"
    b"index 333..000\n"
    b"--- a/removed.txt\n"
    b"+++ /dev/null\n"
    b"@@ -1 +0,0 @@\n"
    b"-bye\n"
    b"\x00" + b"b" * 40 + b"\x00other@example.com\x002024-02-01T09:00:00+00:00\n"
    b"\n"
    b"diff --git a/new.txt b/new.txt\n"
    b"new file mode 100644\n"
    b"--- /dev/null\n"
    b"+++ b/new.txt\n"
    b"@@ -0,0 +1 @@\n"
    b"+only line\n"
    b"\\ No newline at end of file\n"
)


def test_parse_log_splits_commits_files_and_hunks() -> None:
    commits = list(parse_log(_lines(LOG)))
    assert [c.sha for c in commits] == ["a" * 40, "b" * 40]

    first = commits[0]
    assert first.author_email == "dev@example.com"
    assert first.author_date is not None and first.author_date.year == 2024
    assert [f.path for f in first.changed_files] == ["config.txt", ""]

    config = first.changed_files[0]
    assert [frag.start_line_in_new_file for frag in config.fragments] == [2, 10]
    assert config.fragments[0].added_lines() == [b"new=1", b"secret=ABC"]
    assert [line.op for line in config.fragments[1].lines] == [LineOp.DELETE]

    second = commits[1]
    assert second.changed_files[0].path == "new.txt"
    assert second.changed_files[0].fragments[0].added_lines() == [b"only line"]


def test_hunk_body_is_not_mistaken_for_headers() -> None:
    log = (
        b"\x00" + b"c" * 40 + b"\x00x@example.com\x002024-01-01T00:00:00+00:00\n"
        b"diff --git a/notes.md b/notes.md\n"
        b"--- a/notes.md\n"
        b"+++ b/notes.md\n"
        b"@@ -0,0 +1,2 @@\n"
        b"+diff --git a/fake b/fake\n"
        b"++++ b/fake\n"
    )
    (commit,) = parse_log(_lines(log))
    assert len(commit.changed_files) == 1
    assert commit.changed_files[0].path == "notes.md"
    assert commit.changed_files[0].fragments[0].added_lines() == [b"diff --git a/fake b/fake", b"+++ b/fake"]


def test_renames_and_quoted_paths() -> None:
    log = (
        b"\x00" + b"d" * 40 + b"\x00x@example.com\x002024-01-01T00:00:00+00:00\n"
        b"diff --git a/old.txt b/renamed.txt\n"
        b"similarity index 100%\n"
        b"rename from old.txt\n"
        b"rename to renamed.txt\n"
        b'diff --git "a/caf\\303\\251 file.txt" "b/caf\\303\\251 file.txt"\n'
        b'--- "a/caf\\303\\251 file.txt"\n'
        b'+++ "b/caf\\303\\251 file.txt"\n'
        b"@@ -1 +1 @@\n"
        b"-a\n"
        b"+b\n"
    )
    (commit,) = parse_log(_lines(log))
    assert [f.path for f in commit.changed_files] == ["renamed.txt", "café file.txt"]


def test_commit_without_patch_has_no_files() -> None:
    log = b"\x00" + b"e" * 40 + b"\x00x@example.com\x00\n"
    (commit,) = parse_log(_lines(log))
    assert commit.changed_files == []
    assert commit.author_date is None
