from __future__ import annotations

from pathlib import Path
from typing import Any, Awaitable, Callable, Optional, Union

import structlog

from common.backend import BackendError, EncryptionBackendClient, download_path
from common.messages import Messages, get_messages
from state.context import SessionContext
from state.models import WizardStep

from .steps import InvalidTransitionError


log = structlog.get_logger(__name__)

Navigator = Callable[[str], Awaitable[Any]]


class DownloadTrigger:
    """Resolves the encrypted artifact to its download URL and navigates there."""

    def __init__(
        self,
        ctx: SessionContext,
        navigate: Navigator,
        messages: Optional[Messages] = None,
    ) -> None:
        self._ctx = ctx
        self._navigate = navigate
        self._messages = messages or get_messages()

    def url(self) -> str:
        result = self._ctx.encryption
        if self._ctx.step is not WizardStep.RESULT or result is None:
            raise InvalidTransitionError("Download is only available after a successful encryption")
        return download_path(result.encrypted_file_id, result.encrypted_filename)

    async def trigger(self) -> Any:
        """Navigate to the artifact. Returns the navigator's result, or None on failure."""
        url = self.url()
        log.info("download.navigate", url=url)
        try:
            return await self._navigate(url)
        except BackendError as e:
            reason = getattr(e, "message", None) or str(e)
            self._ctx.view.alerts.append(self._messages.download_alert(reason))
            log.warning("download.failed", url=url, error=reason, kind=type(e).__name__)
            return None


class HttpDownloader:
    """Navigator that fetches the artifact over HTTP and saves it under `dest_dir`."""

    def __init__(self, api: EncryptionBackendClient, dest_dir: Union[str, Path] = ".") -> None:
        self._api = api
        self._dest_dir = Path(dest_dir)

    async def __call__(self, url: str) -> Path:
        return await self._api.download(url, self._dest_dir)


__all__ = ["DownloadTrigger", "HttpDownloader", "Navigator"]
