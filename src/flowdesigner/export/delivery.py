"""Delivery of finished exports to the user."""

from __future__ import annotations

import asyncio
import logging
import tempfile
import webbrowser
from pathlib import Path
from typing import Protocol, runtime_checkable

from flowdesigner.export.models import DeliveryError, ExportArtifact

logger = logging.getLogger(__name__)


@runtime_checkable
class DocumentDelivery(Protocol):
    """Hands a finished document to the user.

    ``download`` raises :class:`DeliveryError` when the file cannot be saved;
    ``open_in_viewer`` is the fallback route.
    """

    async def download(self, artifact: ExportArtifact) -> Path: ...

    async def open_in_viewer(self, artifact: ExportArtifact) -> Path: ...


class DirectoryDelivery:
    """Saves exports into a download directory."""

    def __init__(self, directory: str | Path, open_viewer: bool = True) -> None:
        self._directory = Path(directory)
        self._open_viewer = open_viewer

    @property
    def directory(self) -> Path:
        return self._directory

    async def download(self, artifact: ExportArtifact) -> Path:
        target = (self._directory / artifact.filename).resolve()
        if target.parent != self._directory.resolve():
            raise DeliveryError(f"Refusing to save {artifact.filename!r} outside {self._directory}")
        try:
            await asyncio.to_thread(self._write, target, artifact.content)
        except OSError as exc:
            raise DeliveryError(f"Could not save {artifact.filename}: {exc}") from exc
        logger.info("Saved export to %s", target)
        return target

    async def open_in_viewer(self, artifact: ExportArtifact) -> Path:
        handle = tempfile.NamedTemporaryFile(prefix="flow_", suffix=".pdf", delete=False)
        with handle:
            handle.write(artifact.content)
        path = Path(handle.name)
        if self._open_viewer:
            await asyncio.to_thread(webbrowser.open, path.as_uri())
        logger.info("Opened export %s in viewer", path)
        return path

    @staticmethod
    def _write(target: Path, content: bytes) -> None:
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(content)
