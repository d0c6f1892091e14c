from __future__ import annotations

from typing import Optional

import structlog
from pydantic import ValidationError

from common.backend import BackendError, EncryptionBackendClient, EncryptionRequest, EncryptionResult
from common.messages import Messages, get_messages
from state.context import SessionContext
from state.models import FileInfo, WizardStep

from .steps import InvalidTransitionError, StepController


log = structlog.get_logger(__name__)

_LOCKED_CONTROLS = ("start_encrypt", "back_to_step2")


class EncryptOrchestrator:
    """
    Runs the encryption request from the confirmation step.

    While the request is in flight the busy indicator is shown and the start
    and back controls are disabled; a second `submit` is ignored until they
    are enabled again. There is no timeout and no retry.
    """

    def __init__(
        self,
        ctx: SessionContext,
        api: EncryptionBackendClient,
        steps: StepController,
        messages: Optional[Messages] = None,
    ) -> None:
        self._ctx = ctx
        self._api = api
        self._steps = steps
        self._messages = messages or get_messages()

    def build_request(self) -> EncryptionRequest:
        upload = self._ctx.upload
        if upload is None:
            raise InvalidTransitionError("Cannot encrypt before an upload succeeded")
        form = self._ctx.form
        return EncryptionRequest(
            file_id=upload.file_id,
            filename=upload.filename,
            packages=form.packages,
            password=form.password,
            exclude=form.exclude,
            libjars=form.libjars,
            nopwd=form.nopwd,
        )

    async def submit(self) -> Optional[EncryptionResult]:
        """Start encryption. Returns the result on success, None otherwise."""
        if self._steps.step is not WizardStep.CONFIRM:
            raise InvalidTransitionError(f"Cannot start encryption from step {int(self._steps.step)}")
        view = self._ctx.view
        if not view.is_enabled("start_encrypt"):
            log.info("encrypt.ignored", reason="in_flight")
            return None

        try:
            request = self.build_request()
        except ValidationError as ve:
            reason = "; ".join(err["msg"] for err in ve.errors())
            view.alerts.append(self._messages.encrypt_alert(reason))
            log.warning("encrypt.invalid_request", error=reason)
            return None

        generation = self._ctx.generation
        self._set_busy(True)
        log.info(
            "encrypt.started",
            file_id=request.file_id,
            packages=request.packages,
            nopwd=request.nopwd,
            libjars=request.libjars,
        )
        try:
            result = await self._api.encrypt(request)
        except BackendError as e:
            if generation != self._ctx.generation:
                log.info("encrypt.stale", file_id=request.file_id)
                return None
            self._set_busy(False)
            reason = getattr(e, "message", None) or str(e)
            view.alerts.append(self._messages.encrypt_alert(reason))
            log.warning("encrypt.failed", file_id=request.file_id, error=reason, kind=type(e).__name__)
            return None

        if generation != self._ctx.generation:
            log.info("encrypt.stale", file_id=request.file_id)
            return None
        self._set_busy(False)
        self._ctx.encryption = result
        view.encrypted_info = FileInfo(name=result.encrypted_filename, size=str(result.size))
        self._steps.enter_result()
        log.info(
            "encrypt.succeeded",
            encrypted_file_id=result.encrypted_file_id,
            encrypted_filename=result.encrypted_filename,
        )
        return result

    def _set_busy(self, busy: bool) -> None:
        view = self._ctx.view
        view.busy = busy
        for name in _LOCKED_CONTROLS:
            view.controls[name] = not busy


__all__ = ["EncryptOrchestrator"]
