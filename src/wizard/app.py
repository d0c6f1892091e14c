from __future__ import annotations

from typing import Any, Optional, Sequence

import structlog

from common.backend import EncryptionBackendClient, EncryptionResult, UploadResult
from common.messages import Messages, get_messages
from state.context import SessionContext
from state.models import WizardStep

from .config import WizardConfig
from .download import DownloadTrigger, HttpDownloader, Navigator
from .encrypt import EncryptOrchestrator
from .steps import StepController
from .upload import FileLike, UploadHandler


log = structlog.get_logger(__name__)


class Wizard:
    """
    One wizard run: the four components wired over a shared `SessionContext`.

    Front ends edit `ctx.form`, read `ctx.view`, and call the methods below,
    which correspond one-to-one to the controls of the form.
    """

    def __init__(
        self,
        api: EncryptionBackendClient,
        *,
        navigate: Optional[Navigator] = None,
        messages: Optional[Messages] = None,
        ctx: Optional[SessionContext] = None,
    ) -> None:
        self.api = api
        self.ctx = ctx or SessionContext()
        self.messages = messages or get_messages()
        self.steps = StepController(self.ctx, self.messages)
        self.uploader = UploadHandler(self.ctx, api, self.messages)
        self.encryptor = EncryptOrchestrator(self.ctx, api, self.steps, self.messages)
        self.downloader = DownloadTrigger(self.ctx, navigate or HttpDownloader(api), self.messages)

    @classmethod
    def from_config(cls, config: WizardConfig, api: EncryptionBackendClient) -> "Wizard":
        """Build a wizard over `api`; the caller keeps ownership and closes it."""
        return cls(
            api,
            navigate=HttpDownloader(api, config.download_dir),
            messages=get_messages(config.locale),
        )

    @property
    def step(self) -> WizardStep:
        return self.ctx.step

    # --------------- Controls ---------------
    async def select_file(self, file: Optional[FileLike]) -> Optional[UploadResult]:
        return await self.uploader.select(file)

    async def drop_files(self, files: Sequence[FileLike]) -> Optional[UploadResult]:
        return await self.uploader.drop(files)

    def next(self) -> bool:
        return self.steps.forward()

    def back(self) -> bool:
        return self.steps.back()

    async def start_encryption(self) -> Optional[EncryptionResult]:
        return await self.encryptor.submit()

    def download_url(self) -> str:
        return self.downloader.url()

    async def download(self) -> Any:
        return await self.downloader.trigger()

    def restart(self) -> None:
        """Discard the whole run; any response still in flight is dropped on arrival."""
        self.ctx.reset()
        log.info("wizard.restarted", generation=self.ctx.generation)


__all__ = ["Wizard"]
