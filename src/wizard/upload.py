from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Sequence, Union

import structlog

from common.backend import BackendError, EncryptionBackendClient, UploadResult
from common.messages import Messages, get_messages
from state.context import SessionContext
from state.models import FileInfo


log = structlog.get_logger(__name__)


@dataclass(frozen=True)
class SelectedFile:
    """A file picked or dropped by the user."""

    name: str
    content: bytes
    content_type: str = "application/java-archive"

    @classmethod
    def from_path(cls, path: Union[str, os.PathLike[str]]) -> "SelectedFile":
        p = Path(path)
        return cls(name=p.name, content=p.read_bytes())


FileLike = Union[SelectedFile, str, os.PathLike]


def _as_selected(file: FileLike) -> SelectedFile:
    if isinstance(file, SelectedFile):
        return file
    return SelectedFile.from_path(file)


class UploadHandler:
    """
    Sends the user's archive to the backend and records the result.

    - Exactly one file per upload; a drop uses the first dropped file.
    - No size/type checks here; the backend decides what it accepts.
    - Overlapping uploads are not serialized: whichever response arrives last
      becomes the session's upload.
    """

    def __init__(
        self,
        ctx: SessionContext,
        api: EncryptionBackendClient,
        messages: Optional[Messages] = None,
    ) -> None:
        self._ctx = ctx
        self._api = api
        self._messages = messages or get_messages()

    async def select(self, file: Optional[FileLike]) -> Optional[UploadResult]:
        """Handle an explicit file pick. Returns the result, or None if nothing was recorded."""
        if file is None:
            return None
        return await self._upload(_as_selected(file))

    async def drop(self, files: Sequence[FileLike]) -> Optional[UploadResult]:
        """Handle a drag-and-drop event."""
        if not files:
            return None
        return await self._upload(_as_selected(files[0]))

    async def _upload(self, file: SelectedFile) -> Optional[UploadResult]:
        log.info("upload.started", filename=file.name, bytes=len(file.content))
        generation = self._ctx.generation
        try:
            result = await self._api.upload(file.name, file.content, content_type=file.content_type)
        except BackendError as e:
            if generation != self._ctx.generation:
                log.info("upload.stale", filename=file.name)
                return None
            reason = getattr(e, "message", None) or str(e)
            self._ctx.view.alerts.append(self._messages.upload_alert(reason))
            log.warning("upload.failed", filename=file.name, error=reason, kind=type(e).__name__)
            return None

        if generation != self._ctx.generation:
            log.info("upload.stale", filename=file.name)
            return None
        self._ctx.upload = result
        self._ctx.view.file_info = FileInfo(name=result.filename, size=str(result.size))
        self._ctx.view.controls["next_to_step2"] = True
        log.info("upload.succeeded", file_id=result.file_id, filename=result.filename)
        return result


__all__ = ["FileLike", "SelectedFile", "UploadHandler"]
