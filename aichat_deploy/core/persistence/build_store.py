"""
Build store — content-addressed output tree with atomic publication.

Layout::

    .aichat-store/
        3f9c...e1-aichat-0.1.0/        published artifact (immutable)
            bin/aichat
            .artifact.json             PackageArtifact metadata
        .stage-k2j4x/                  in-progress build (never consumed)

Builds happen in a staging directory inside the store and are published
by a single rename, so an output path either exists completely or not at
all.  A failed or cancelled build only ever leaves a staging directory,
which is removed on the way out (or by ``clean_staging`` after a crash).
"""

from __future__ import annotations

import json
import logging
import shutil
import tempfile
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from pydantic import ValidationError

from aichat_deploy.core.hashing import short_hash
from aichat_deploy.core.models.package import PackageArtifact

logger = logging.getLogger(__name__)

ARTIFACT_META = ".artifact.json"
_STAGE_PREFIX = ".stage-"


class BuildStore:
    """A directory of immutable, content-addressed build outputs."""

    def __init__(self, root: Path) -> None:
        self._root = root

    @property
    def root(self) -> Path:
        return self._root

    def out_path(self, digest: str, name: str, version: str) -> Path:
        """Output path for an input hash — a pure function of its arguments."""
        return self._root / f"{short_hash(digest)}-{name}-{version}"

    def lookup(self, out_path: Path) -> PackageArtifact | None:
        """Return the published artifact at ``out_path``, or None."""
        meta = out_path / ARTIFACT_META
        if not meta.is_file():
            return None
        try:
            data = json.loads(meta.read_text(encoding="utf-8"))
            return PackageArtifact.model_validate(data)
        except (OSError, json.JSONDecodeError, ValidationError) as e:
            logger.warning("Unreadable artifact metadata %s: %s — treating as absent", meta, e)
            return None

    @contextmanager
    def staging(self) -> Iterator[Path]:
        """A private build directory, removed when the block exits.

        If the block published the directory, nothing is left to remove.
        """
        self._root.mkdir(parents=True, exist_ok=True)
        stage = Path(tempfile.mkdtemp(dir=self._root, prefix=_STAGE_PREFIX))
        try:
            yield stage
        finally:
            if stage.exists():
                shutil.rmtree(stage, ignore_errors=True)
                logger.debug("Discarded staging directory %s", stage)

    def publish(self, stage: Path, artifact: PackageArtifact) -> PackageArtifact:
        """Atomically move a finished staging directory to its output path.

        If another process already published the same output path, the
        staging directory is discarded and the existing artifact returned.
        """
        out_path = Path(artifact.out_path)
        content = json.dumps(artifact.model_dump(mode="json"), indent=2) + "\n"
        (stage / ARTIFACT_META).write_text(content, encoding="utf-8")

        try:
            stage.rename(out_path)
        except OSError:
            existing = self.lookup(out_path)
            if existing is None:
                raise
            logger.debug("Output %s already published, keeping existing", out_path)
            shutil.rmtree(stage, ignore_errors=True)
            return existing

        logger.info("Published %s", out_path)
        return artifact

    def list_artifacts(self) -> list[PackageArtifact]:
        """All published artifacts, sorted by output path."""
        if not self._root.is_dir():
            return []
        found = []
        for child in sorted(self._root.iterdir()):
            if child.name.startswith(".") or not child.is_dir():
                continue
            artifact = self.lookup(child)
            if artifact is not None:
                found.append(artifact)
        return found

    def clean_staging(self) -> int:
        """Remove staging directories left behind by interrupted builds."""
        if not self._root.is_dir():
            return 0
        removed = 0
        for child in self._root.iterdir():
            if child.is_dir() and child.name.startswith(_STAGE_PREFIX):
                shutil.rmtree(child, ignore_errors=True)
                removed += 1
        if removed:
            logger.info("Removed %d stale staging directories from %s", removed, self._root)
        return removed
