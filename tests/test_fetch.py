"""
Tests for download, unpack and the scoped fetch workspace.
"""

import os
import stat
from pathlib import Path

import pytest

from rootless.core.models.artifact import ArtifactSpec
from rootless.core.services.provision.errors import (
    DownloadFailed,
    PayloadLayoutMismatch,
    UnpackFailed,
)
from rootless.core.services.provision.execution.fetch import (
    Fetcher,
    download,
    locate_payload,
    unpack,
)
from rootless.core.services.provision.execution.workspace import Workspace
from tests.helpers import build_tarball, build_zip

URL_SOURCE = {"type": "url_template", "url": "file:///unused"}

TREE = ArtifactSpec.model_validate({
    "kind": "prebuilt-binary", "source": URL_SOURCE,
    "layout": "tree", "payload_glob": "demo", "expect": "bin/demo",
})

BINARIES = ArtifactSpec.model_validate({
    "kind": "prebuilt-binary", "source": URL_SOURCE,
    "layout": "binaries", "binaries": ["sqlite3"],
})


class TestWorkspace:
    def test_removed_on_exit(self, tmp_path: Path):
        with Workspace("demo", parent=tmp_path) as ws:
            path = ws.path
            (path / "junk").write_text("x")
            assert path.name.startswith("rootless-demo-")
        assert not path.exists()

    def test_removed_on_error(self, tmp_path: Path):
        with pytest.raises(ValueError):
            with Workspace("demo", parent=tmp_path) as ws:
                path = ws.path
                raise ValueError("boom")
        assert not path.exists()

    def test_path_requires_open_workspace(self):
        with pytest.raises(RuntimeError):
            Workspace().path


class TestDownload:
    def test_file_url(self, tmp_path: Path, tree_tarball: Path):
        dest = download(tree_tarball.as_uri(), tmp_path / "out.tar.gz")
        assert dest.read_bytes() == tree_tarball.read_bytes()

    def test_missing_file(self, tmp_path: Path):
        with pytest.raises(DownloadFailed):
            download((tmp_path / "nope.tar.gz").as_uri(), tmp_path / "out")

    def test_empty_body(self, tmp_path: Path):
        empty = tmp_path / "empty.tar.gz"
        empty.write_bytes(b"")
        with pytest.raises(DownloadFailed, match="empty body"):
            download(empty.as_uri(), tmp_path / "out")


class TestUnpack:
    """Archive formats and payload root selection."""

    def test_tarball_keeps_modes(self, tmp_path: Path, tree_tarball: Path):
        out = unpack(tree_tarball, tmp_path / "x", TREE)
        binary = out / "demo" / "bin" / "demo"
        assert binary.is_file()
        assert stat.S_IMODE(binary.stat().st_mode) & 0o100

    def test_zip_restores_modes(self, tmp_path: Path):
        archive = build_zip(
            tmp_path / "sqlite-tools-linux-x64-3510100.zip",
            {"sqlite3": "bin", "sqldiff": "bin"},
        )
        out = unpack(archive, tmp_path / "x", BINARIES)
        assert stat.S_IMODE((out / "sqlite3").stat().st_mode) == 0o755

    def test_bare_single_binary(self, tmp_path: Path):
        bare = tmp_path / "sqlite3-linux"
        bare.write_text("bin")
        out = unpack(bare, tmp_path / "x", BINARIES)
        assert (out / "sqlite3").read_text() == "bin"

    def test_unrecognised_format(self, tmp_path: Path):
        bare = tmp_path / "demo.rpm"
        bare.write_text("x")
        with pytest.raises(UnpackFailed, match="Unrecognised archive format"):
            unpack(bare, tmp_path / "x", TREE)

    def test_corrupt_archive(self, tmp_path: Path):
        bad = tmp_path / "demo.tar.gz"
        bad.write_bytes(b"definitely not gzip")
        with pytest.raises(UnpackFailed):
            unpack(bad, tmp_path / "x", TREE)

    def test_payload_glob(self, tmp_path: Path, tree_tarball: Path, make_ref):
        out = unpack(tree_tarball, tmp_path / "x", TREE)
        payload = locate_payload(out, make_ref(tree_tarball, TREE))
        assert payload.root == out / "demo"

    def test_single_top_level_dir(self, tmp_path: Path, make_ref):
        spec = TREE.model_copy(update={"payload_glob": ""})
        archive = build_tarball(tmp_path / "a.tar.gz", {"pkg-9/bin/demo": "x"})
        out = unpack(archive, tmp_path / "x", spec)
        assert locate_payload(out, make_ref(archive, spec)).root == out / "pkg-9"

    def test_expect_missing(self, tmp_path: Path, make_ref):
        archive = build_tarball(tmp_path / "a.tar.gz", {"demo/README": "x"})
        out = unpack(archive, tmp_path / "x", TREE)
        with pytest.raises(PayloadLayoutMismatch, match="bin/demo"):
            locate_payload(out, make_ref(archive, TREE))

    def test_glob_without_match(self, tmp_path: Path, make_ref):
        archive = build_tarball(tmp_path / "a.tar.gz", {"other/bin/demo": "x"})
        out = unpack(archive, tmp_path / "x", TREE)
        with pytest.raises(PayloadLayoutMismatch, match="no directory matching"):
            locate_payload(out, make_ref(archive, TREE))

    def test_binaries_found_in_subdir(self, tmp_path: Path, make_ref):
        archive = build_zip(tmp_path / "t.zip", {"sqlite-tools/sqlite3": "bin"})
        out = unpack(archive, tmp_path / "x", BINARIES)
        payload = locate_payload(out, make_ref(archive, BINARIES))
        assert payload.find_binary("sqlite3") == out / "sqlite-tools" / "sqlite3"

    def test_binaries_missing(self, tmp_path: Path, make_ref):
        archive = build_zip(tmp_path / "t.zip", {"sqldiff": "bin"})
        out = unpack(archive, tmp_path / "x", BINARIES)
        with pytest.raises(PayloadLayoutMismatch, match="missing binaries sqlite3"):
            locate_payload(out, make_ref(archive, BINARIES))


class TestFetcher:
    """Workspace lifetime around a fetch."""

    def test_workspace_removed_after_success(self, tmp_path: Path, tree_tarball: Path, make_ref):
        fetcher = Fetcher(workdir=tmp_path / "work")
        with fetcher.fetch(make_ref(tree_tarball, TREE), label="demo") as payload:
            workspace = payload.workspace
            assert (payload.root / "bin" / "demo").is_file()
        assert workspace is not None
        assert not workspace.exists()

    def test_workspace_removed_after_failure(self, tmp_path: Path, make_ref):
        archive = build_tarball(tmp_path / "a.tar.gz", {"demo/README": "x"})
        work = tmp_path / "work"
        with pytest.raises(PayloadLayoutMismatch):
            with Fetcher(workdir=work).fetch(make_ref(archive, TREE)):
                pass
        assert os.listdir(work) == []

    def test_download_failure_leaves_nothing(self, tmp_path: Path, make_ref):
        work = tmp_path / "work"
        ref = make_ref(tmp_path / "missing.tar.gz", TREE)
        with pytest.raises(DownloadFailed):
            with Fetcher(workdir=work).fetch(ref):
                pass
        assert os.listdir(work) == []

    def test_corrupt_archive_leaves_nothing(self, tmp_path: Path, make_ref):
        bad = tmp_path / "demo.tar.gz"
        bad.write_bytes(b"definitely not gzip")
        work = tmp_path / "work"
        with pytest.raises(UnpackFailed):
            with Fetcher(workdir=work).fetch(make_ref(bad, TREE)):
                pass
        assert os.listdir(work) == []

    def test_interrupt_inside_scope_removes_workspace(self, tmp_path: Path, tree_tarball: Path, make_ref):
        work = tmp_path / "work"
        seen = []
        with pytest.raises(KeyboardInterrupt):
            with Fetcher(workdir=work).fetch(make_ref(tree_tarball, TREE)) as payload:
                seen.append(payload.workspace)
                raise KeyboardInterrupt
        assert seen[0] is not None
        assert not seen[0].exists()
        assert os.listdir(work) == []
