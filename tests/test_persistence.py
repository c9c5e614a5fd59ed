"""
Tests for the build store — output paths, atomic publication, staging.
"""

from pathlib import Path

from aichat_deploy.core.models.package import PackageArtifact
from aichat_deploy.core.persistence.build_store import ARTIFACT_META, BuildStore


def _artifact(out_path: Path) -> PackageArtifact:
    return PackageArtifact(
        name="aichat",
        version="0.1.0",
        out_path=str(out_path),
        input_hash="f" * 64,
        platform="x86_64-unknown-linux-gnu",
        toolchain="t" * 64,
        binary="aichat",
    )


def _stage_with_binary(store: BuildStore, stage: Path) -> None:
    (stage / "bin").mkdir()
    (stage / "bin" / "aichat").write_text("#!/bin/sh\n")


class TestOutPath:
    def test_pure(self, store):
        a = store.out_path("ab" * 32, "aichat", "0.1.0")
        b = store.out_path("ab" * 32, "aichat", "0.1.0")
        assert a == b
        assert a.name == f"{'ab' * 16}-aichat-0.1.0"

    def test_distinct_digests(self, store):
        assert store.out_path("a" * 64, "x", "1") != store.out_path("b" * 64, "x", "1")


class TestPublish:
    def test_publish_and_lookup(self, store):
        out = store.out_path("c" * 64, "aichat", "0.1.0")
        with store.staging() as stage:
            _stage_with_binary(store, stage)
            published = store.publish(stage, _artifact(out))
        assert out.is_dir()
        assert (out / "bin" / "aichat").is_file()
        assert (out / ARTIFACT_META).is_file()
        assert store.lookup(out) == published

    def test_lookup_absent(self, store):
        assert store.lookup(store.root / "nothing") is None

    def test_lookup_corrupt_metadata(self, store):
        out = store.root / "broken"
        out.mkdir(parents=True)
        (out / ARTIFACT_META).write_text("{not json")
        assert store.lookup(out) is None

    def test_already_published_keeps_existing(self, store):
        out = store.out_path("d" * 64, "aichat", "0.1.0")
        with store.staging() as stage:
            _stage_with_binary(store, stage)
            first = store.publish(stage, _artifact(out))
        (out / "bin" / "marker").write_text("first")

        with store.staging() as stage:
            _stage_with_binary(store, stage)
            second = store.publish(stage, _artifact(out))

        assert second == first
        assert (out / "bin" / "marker").read_text() == "first"
        assert not any(p.name.startswith(".stage-") for p in store.root.iterdir())


class TestStaging:
    def test_discarded_on_error(self, store):
        staged = None
        try:
            with store.staging() as stage:
                staged = stage
                (stage / "partial").write_text("x")
                raise RuntimeError("compiler crashed")
        except RuntimeError:
            pass
        assert staged is not None
        assert not staged.exists()

    def test_clean_staging(self, store):
        store.root.mkdir(parents=True)
        (store.root / ".stage-abc").mkdir()
        (store.root / ".stage-def").mkdir()
        (store.root / "keep").mkdir()
        assert store.clean_staging() == 2
        assert [p.name for p in store.root.iterdir()] == ["keep"]

    def test_clean_missing_root(self, tmp_path):
        assert BuildStore(tmp_path / "none").clean_staging() == 0


class TestListArtifacts:
    def test_empty(self, tmp_path):
        assert BuildStore(tmp_path / "none").list_artifacts() == []

    def test_lists_published_only(self, store):
        for digest in ("1" * 64, "2" * 64):
            out = store.out_path(digest, "aichat", "0.1.0")
            with store.staging() as stage:
                _stage_with_binary(store, stage)
                store.publish(stage, _artifact(out))
        (store.root / "not-an-artifact").mkdir()
        (store.root / ".stage-xyz").mkdir()

        artifacts = store.list_artifacts()
        assert len(artifacts) == 2
        assert artifacts[0].out_path < artifacts[1].out_path
