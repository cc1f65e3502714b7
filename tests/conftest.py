import queue
import shutil
from pathlib import Path
from typing import Dict, Iterator, List, Optional

import pytest

from gitsift.errors import ReferenceNotFoundError, RemoteResolutionError
from gitsift.models import CommitRecord, DiffFragment, DiffLine, FileDiff, LineOp
from gitsift.vcs import RepositoryHandle

requires_git = pytest.mark.skipif(shutil.which("git") is None, reason="git executable not available")


class FakeHistoryProvider:
    """In-memory stand-in for the GitPython provider."""

    def __init__(self) -> None:
        self.commits: List[CommitRecord] = []
        self.remote: Optional[str] = "https://example.com/org/repo.git"
        self.head_sha: Optional[str] = "head"
        self.head_error: Optional[Exception] = None
        self.status: List[str] = []
        self.files: Dict[str, bytes] = {}
        self.refs: Dict[str, str] = {}
        self.resolve_errors: Dict[str, Exception] = {}
        self.resolve_calls: List[str] = []
        self.visited: List[str] = []
        self.log_error: Optional[Exception] = None
        self.status_error: Optional[Exception] = None

    def open(self, path):
        return {"path": path}

    def iter_commits(self, repo, start_revision=None) -> Iterator[CommitRecord]:
        for commit in self.commits:
            self.visited.append(commit.sha)
            yield commit
        if self.log_error is not None:
            raise self.log_error

    def resolve_revision(self, repo, revision: str) -> str:
        self.resolve_calls.append(revision)
        if revision in self.resolve_errors:
            raise self.resolve_errors[revision]
        if revision not in self.refs:
            raise ReferenceNotFoundError(revision)
        return self.refs[revision]

    def remote_url(self, repo, name="origin") -> str:
        if self.remote is None:
            raise RemoteResolutionError("error getting repo remote origin")
        return self.remote

    def head(self, repo):
        if self.head_error is not None:
            raise self.head_error
        return self.head_sha

    def worktree_status(self, repo):
        if self.status_error is not None:
            raise self.status_error
        return list(self.status)

    def read_worktree_file(self, repo, path: str) -> bytes:
        if path not in self.files:
            raise FileNotFoundError(path)
        return self.files[path]


def make_commit(sha: str, files: Dict[str, List[List[str]]], email: str = "dev@example.com") -> CommitRecord:
    """Build a commit whose files map to hunks of ``"+line"``/``"-line"``/``" line"`` strings."""
    ops = {"+": LineOp.ADD, "-": LineOp.DELETE, " ": LineOp.CONTEXT}
    changed = []
    for path, hunks in files.items():
        fragments = []
        for index, hunk in enumerate(hunks):
            lines = [DiffLine(op=ops[text[0]], text=text[1:].encode()) for text in hunk]
            fragments.append(DiffFragment(start_line_in_new_file=index * 10 + 1, lines=lines))
        changed.append(FileDiff(path=path, fragments=fragments))
    return CommitRecord(sha=sha, author_email=email, author_date=None, changed_files=changed)


@pytest.fixture
def fake_provider() -> FakeHistoryProvider:
    return FakeHistoryProvider()


@pytest.fixture
def fake_handle(tmp_path) -> RepositoryHandle:
    return RepositoryHandle(path=tmp_path, repo=object(), label="fake")


@pytest.fixture
def sink() -> "queue.Queue":
    return queue.Queue()


def drain(q: "queue.Queue") -> list:
    items = []
    while not q.empty():
        items.append(q.get_nowait())
    return items


class GitRepoBuilder:
    """Creates a throwaway repository through the git CLI."""

    def __init__(self, path: Path, branch: str = "trunk") -> None:
        from git import Repo

        path.mkdir(parents=True, exist_ok=True)
        self.path = path
        self.repo = Repo.init(str(path))
        with self.repo.config_writer() as config:
            config.set_value("user", "name", "Test Author")
            config.set_value("user", "email", "author@example.com")
            config.set_value("commit", "gpgsign", "false")
        self.repo.git.symbolic_ref("HEAD", f"refs/heads/{branch}")

    def write(self, name: str, content: str) -> Path:
        target = self.path / name
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(content, encoding="utf-8")
        return target

    def commit(self, files: Dict[str, str], message: str = "change") -> str:
        for name, content in files.items():
            self.write(name, content)
        self.repo.git.add("--all")
        self.repo.git.commit("-m", message, "--allow-empty")
        return self.repo.head.commit.hexsha

    def set_origin(self, url: str) -> None:
        self.repo.create_remote("origin", url)


@pytest.fixture
def git_repo(tmp_path) -> Iterator[GitRepoBuilder]:
    if shutil.which("git") is None:
        pytest.skip("git executable not available")
    builder = GitRepoBuilder(tmp_path / "repo")
    yield builder
    builder.repo.close()


@pytest.fixture
def commit_factory():
    return make_commit


@pytest.fixture
def drain_queue():
    return drain
