"""
Source tree hashing — a content digest of the build input directory.

The digest covers every file's relative path, its bytes and whether it
is executable.  Walk order is sorted, so the digest does not depend on
filesystem enumeration order, mtimes or the absolute location of the
tree.  Symlinks are recorded by their link text and followed, so edits
behind a link change the digest too.  VCS metadata and build output
directories are skipped.
"""

from __future__ import annotations

import hashlib
import logging
import os
from pathlib import Path, PurePosixPath

logger = logging.getLogger(__name__)

DEFAULT_IGNORES: frozenset[str] = frozenset({
    ".git", ".hg", ".svn", ".direnv",
    "target", "result", ".aichat-store",
    "__pycache__",
})

_CHUNK = 1 << 16


def _hash_file(path: Path, digest: "hashlib._Hash") -> None:
    with path.open("rb") as fh:
        while chunk := fh.read(_CHUNK):
            digest.update(chunk)


def _entry(kind: bytes, rel: PurePosixPath, *fields: bytes) -> bytes:
    return b" ".join((kind, os.fsencode(rel.as_posix()), *fields)) + b"\n"


def _hash_tree(
    top: Path,
    prefix: PurePosixPath,
    digest: "hashlib._Hash",
    ignore: frozenset[str],
    skipped: set[Path],
    expanded: set[Path],
) -> int:
    """Feed ``top`` into ``digest`` with paths relative to ``prefix``.

    Symlinked directories are recorded by their link text and then
    hashed through, once per real directory.
    """
    files = 0
    for dirpath, dirnames, filenames in os.walk(top):
        current = Path(dirpath)
        base = prefix / current.relative_to(top)
        kept = []
        for name in sorted(dirnames):
            path = current / name
            if name in ignore or path.resolve() in skipped:
                continue
            if not path.is_symlink():
                kept.append(name)
                continue
            digest.update(_entry(b"L", base / name, os.fsencode(os.readlink(path))))
            target = path.resolve()
            if target in expanded:
                continue
            expanded.add(target)
            files += _hash_tree(target, base / name, digest, ignore, skipped, expanded)
        dirnames[:] = kept

        for name in sorted(filenames):
            if name in ignore:
                continue
            path = current / name
            rel = base / name
            if path.is_symlink():
                digest.update(_entry(b"L", rel, os.fsencode(os.readlink(path))))
                if not path.is_file():
                    continue  # dangling
            executable = b"x" if os.access(path, os.X_OK) else b"-"
            size = str(path.stat().st_size).encode()
            digest.update(_entry(b"F", rel, executable, size))
            _hash_file(path, digest)
            files += 1
    return files


def hash_source_tree(
    root: Path,
    ignore: frozenset[str] = DEFAULT_IGNORES,
    extra_ignores: set[Path] | None = None,
) -> str:
    """SHA-256 hex digest of a source tree.

    Args:
        root: Directory to hash.
        ignore: Directory/file names skipped at any depth.
        extra_ignores: Absolute paths skipped (e.g. a store inside the tree).

    Raises:
        NotADirectoryError: If ``root`` is not a directory.
    """
    if not root.is_dir():
        raise NotADirectoryError(str(root))

    skipped = {p.resolve() for p in (extra_ignores or set())}
    digest = hashlib.sha256()
    files = _hash_tree(root, PurePosixPath(), digest, ignore, skipped, {root.resolve()})

    result = digest.hexdigest()
    logger.debug("Hashed source tree %s: %d files → %s", root, files, result[:12])
    return result
