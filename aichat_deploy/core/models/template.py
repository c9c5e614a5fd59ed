"""
Generated file model — used by all generators.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel


class GeneratedFile(BaseModel):
    """A file rendered for a host collaborator (service manager, shell).

    Attributes:
        path:      Relative path of the file to write.
        content:   Full file content.
        mode:      File permission bits applied on write.
        reason:    Why this file was generated.
    """

    path: str
    content: str
    mode: int = 0o644
    reason: str = ""

    def write_to(self, directory: Path, overwrite: bool = False) -> Path:
        """Write the file under ``directory`` and return its path.

        Raises:
            FileExistsError: If the target exists and ``overwrite`` is False.
        """
        target = directory / self.path
        if target.exists() and not overwrite:
            raise FileExistsError(f"{target} already exists")
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(self.content, encoding="utf-8")
        target.chmod(self.mode)
        return target
