"""
Filesystem stores for generated artifacts and original template sources.
"""
from __future__ import annotations

import logging
import os
import time
from dataclasses import dataclass
from pathlib import Path

from contractgen.core.exceptions import SourceUnavailableFailure

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Artifact:
    path: str
    filename: str


class ArtifactStore:
    """
    Write-once storage for generated documents.

    Every artifact gets a fresh ``{prefix}_{identity}_{unix-millis}.{ext}``
    name that is reserved with an exclusive create, so regenerations never
    overwrite an earlier file.
    """

    def __init__(self, root: str | Path, prefix: str = "contrato"):
        self.root = Path(root)
        self.prefix = prefix

    def ensure_root(self) -> None:
        self.root.mkdir(parents=True, exist_ok=True)

    def reserve(self, identity: str, extension: str) -> Artifact:
        self.ensure_root()
        millis = int(time.time() * 1000)
        while True:
            filename = f"{self.prefix}_{identity}_{millis}.{extension}"
            path = self.root / filename
            try:
                fd = os.open(path, os.O_CREAT | os.O_EXCL | os.O_WRONLY)
            except FileExistsError:
                millis += 1
                continue
            os.close(fd)
            return Artifact(path=str(path), filename=filename)

    def discard(self, artifact: Artifact) -> None:
        try:
            os.remove(artifact.path)
        except FileNotFoundError:
            pass

    def files_for(self, identity: str) -> list[Path]:
        if not self.root.is_dir():
            return []
        return sorted(self.root.glob(f"{self.prefix}_{identity}_*"))

    def prune(self, identity: str, keep: int) -> list[str]:
        """Delete the oldest artifact files of ``identity`` beyond ``keep``.

        Ordered by modification time. Version records are never touched.
        """
        files = self.files_for(identity)
        if len(files) <= keep:
            return []

        files.sort(key=lambda p: p.stat().st_mtime)
        removed: list[str] = []
        for path in files[: len(files) - keep]:
            path.unlink(missing_ok=True)
            removed.append(str(path))
            logger.info("Pruned artifact %s", path.name)
        return removed


class SourceStore:
    """Byte access to the original Word documents templates were built from."""

    def __init__(self, root: str | Path):
        self.root = Path(root)

    def resolve(self, reference: str) -> Path:
        path = Path(reference)
        if not path.is_absolute():
            path = self.root / path
        return path

    def read(self, reference: str | None) -> bytes:
        if not reference:
            raise SourceUnavailableFailure(reference, "no source document")
        path = self.resolve(reference)
        try:
            return path.read_bytes()
        except OSError as exc:
            raise SourceUnavailableFailure(reference, str(exc)) from exc
