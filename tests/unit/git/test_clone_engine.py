"""Tests for shallow in-memory cloning."""

from types import SimpleNamespace

import pytest
from conftest import store_commit
from dulwich import porcelain
from dulwich.repo import Repo

from org_grep.credentials import HostCredential
from org_grep.errors import CloneError
from org_grep.git.clone import CLONE_DEPTH, CloneEngine, RepositoryReference

CREDENTIAL = HostCredential(host="github.com", user="octocat", token="s3cret")


class FakeGitClient:
    """Stands in for a dulwich transport client."""

    def __init__(self, spec=None, error=None, empty=False):
        self.spec = spec or {"README.md": b"hello\n"}
        self.error = error
        self.empty = empty
        self.fetches = []

    def fetch(self, path, target, determine_wants=None, progress=None, depth=None):
        self.fetches.append({"path": path, "depth": depth})
        if self.error is not None:
            raise self.error
        if self.empty:
            assert determine_wants({}) == []
            return SimpleNamespace(refs={})

        head = store_commit(target.object_store, self.spec)
        refs = {b"HEAD": head, b"refs/heads/main": head, b"refs/heads/other": b"f" * 40}
        self.wanted = determine_wants(refs)
        return SimpleNamespace(refs=refs)


def make_engine(client, credential=CREDENTIAL):
    calls = []

    def factory(url, **kwargs):
        calls.append((url, kwargs))
        return client, "/owner/repo.git"

    return CloneEngine(credential, transport_factory=factory), calls


class TestCloneEngine:
    def test_clone_produces_tree_of_head_commit(self):
        client = FakeGitClient(spec={"pkg": {"x.go": b"// TODO(alice)\n"}})
        engine, _ = make_engine(client)

        tree = engine.clone(RepositoryReference("https://github.com/owner/repo.git"))

        assert tree.repository == "https://github.com/owner/repo.git"
        assert tree.read_bytes("pkg/x.go") == b"// TODO(alice)\n"

    def test_clone_is_shallow_and_wants_only_head(self):
        client = FakeGitClient()
        engine, _ = make_engine(client)

        engine.clone(RepositoryReference("https://github.com/owner/repo.git"))

        assert client.fetches == [{"path": "/owner/repo.git", "depth": CLONE_DEPTH}]
        assert CLONE_DEPTH == 1
        assert len(client.wanted) == 1

    def test_credentials_are_sent_for_https(self):
        engine, calls = make_engine(FakeGitClient())

        engine.clone(RepositoryReference("https://github.com/owner/repo.git"))

        assert calls == [
            (
                "https://github.com/owner/repo.git",
                {"username": "octocat", "password": "s3cret"},
            )
        ]

    def test_credentials_are_not_sent_for_other_schemes(self):
        engine, calls = make_engine(FakeGitClient())
        engine.clone(RepositoryReference("git://example.com/repo.git"))
        assert calls[0][1] == {}

    def test_transport_failure_becomes_clone_error(self):
        cause = ConnectionError("connection refused")
        engine, _ = make_engine(FakeGitClient(error=cause))

        with pytest.raises(CloneError) as exc_info:
            engine.clone(RepositoryReference("https://github.com/owner/gone.git"))

        assert exc_info.value.repository == "https://github.com/owner/gone.git"
        assert exc_info.value.cause is cause
        assert "connection refused" in str(exc_info.value)

    def test_malformed_url_becomes_clone_error(self):
        def factory(url, **kwargs):
            raise ValueError(f"unknown scheme in {url}")

        engine = CloneEngine(CREDENTIAL, transport_factory=factory)
        with pytest.raises(CloneError):
            engine.clone(RepositoryReference("bogus:::url"))

    def test_empty_remote_becomes_clone_error(self):
        engine, _ = make_engine(FakeGitClient(empty=True))
        with pytest.raises(CloneError, match="empty"):
            engine.clone(RepositoryReference("https://github.com/owner/empty.git"))


def test_repository_reference_displays_its_url():
    reference = RepositoryReference("https://github.com/owner/repo.git")
    assert reference.display_name == "https://github.com/owner/repo.git"
    assert str(reference) == reference.display_name


class TestLocalClone:
    """Clones through dulwich's real transport from a repository on disk."""

    AUTHOR = b"Test <test@example.com>"

    def commit_files(self, path, files, message):
        for name, content in files.items():
            target = path / name
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(content)
        porcelain.add(str(path), paths=[str(path / name) for name in files])
        porcelain.commit(
            str(path), message=message, author=self.AUTHOR, committer=self.AUTHOR
        )

    @pytest.fixture
    def origin(self, tmp_path):
        path = tmp_path / "origin"
        Repo.init(str(path), mkdir=True).close()
        self.commit_files(
            path, {"README.md": b"first\n", "pkg/x.go": b"// TODO(alice): fix this\n"}, b"first"
        )
        self.commit_files(path, {"README.md": b"second\n"}, b"second")
        return path

    def test_clone_reads_latest_snapshot(self, origin):
        engine = CloneEngine()

        with engine.clone(RepositoryReference(origin.as_uri())) as tree:
            assert [entry.path for entry in tree.list_dir("")] == ["README.md", "pkg"]
            assert tree.read_bytes("README.md") == b"second\n"
            assert tree.read_bytes("pkg/x.go") == b"// TODO(alice): fix this\n"

    def test_missing_local_repository_is_a_clone_error(self, tmp_path):
        with pytest.raises(CloneError):
            CloneEngine().clone(RepositoryReference((tmp_path / "absent").as_uri()))
