from __future__ import annotations

from typing import Optional

import structlog

from common.messages import Messages, get_messages
from state.context import SessionContext
from state.models import Confirmation, WizardStep


log = structlog.get_logger(__name__)


class InvalidTransitionError(RuntimeError):
    """A trigger was fired from a step that has no such transition."""


def validate_step2(ctx: SessionContext, messages: Messages) -> bool:
    """Check the step-2 form and update the inline error region.

    Fails when packages is blank, or when a password is required and blank.
    Passing clears any previous inline error.
    """
    form = ctx.form
    ctx.view.inline_error = None

    if not form.packages.strip():
        ctx.view.inline_error = messages.packages_required
        return False

    if form.password_required and not form.password.strip():
        ctx.view.inline_error = messages.password_required
        return False

    return True


def build_confirmation(ctx: SessionContext, messages: Messages) -> Confirmation:
    form = ctx.form
    return Confirmation(
        filename=ctx.upload.filename if ctx.upload else "",
        packages=form.packages,
        mode=messages.mode_label(form.nopwd),
        exclude=form.exclude or messages.none_placeholder,
        libjars=messages.yes_no(form.libjars),
    )


class StepController:
    """
    Four-step state machine over a `SessionContext`.

    Transitions
    - 1 -> 2 forward, only once an upload has been recorded
    - 2 -> 1 back
    - 2 -> 3 forward, when `validate_step2` passes; snapshots the confirmation
    - 3 -> 2 back, unless the back control is disabled (encryption in flight)
    - 3 -> 4 only through `enter_result`, called after a successful encryption

    `forward`/`back` return False when a guard blocks the move and raise
    `InvalidTransitionError` when the current step has no such transition.
    """

    def __init__(self, ctx: SessionContext, messages: Optional[Messages] = None) -> None:
        self._ctx = ctx
        self._messages = messages or get_messages()

    @property
    def step(self) -> WizardStep:
        return self._ctx.step

    def show(self, step: WizardStep) -> None:
        view = self._ctx.view
        prev = view.active_step
        for s in view.steps:
            view.steps[s] = False
        view.steps[WizardStep(step)] = True
        log.info("step.changed", from_step=int(prev), to_step=int(step))

    def can_forward(self) -> bool:
        if self.step is WizardStep.UPLOAD:
            return self._ctx.upload is not None and self._ctx.view.is_enabled("next_to_step2")
        return self.step is WizardStep.PARAMETERS

    def forward(self) -> bool:
        step = self.step
        if step is WizardStep.UPLOAD:
            if self._ctx.upload is None or not self._ctx.view.is_enabled("next_to_step2"):
                return False
            self.show(WizardStep.PARAMETERS)
            return True

        if step is WizardStep.PARAMETERS:
            if not validate_step2(self._ctx, self._messages):
                log.info("step.validation_failed", error=self._ctx.view.inline_error)
                return False
            self._ctx.view.confirmation = build_confirmation(self._ctx, self._messages)
            self.show(WizardStep.CONFIRM)
            return True

        raise InvalidTransitionError(f"No forward transition from step {int(step)}")

    def back(self) -> bool:
        step = self.step
        if step is WizardStep.PARAMETERS:
            self.show(WizardStep.UPLOAD)
            return True

        if step is WizardStep.CONFIRM:
            if not self._ctx.view.is_enabled("back_to_step2"):
                return False
            self.show(WizardStep.PARAMETERS)
            return True

        raise InvalidTransitionError(f"No back transition from step {int(step)}")

    def enter_result(self) -> None:
        if self.step is not WizardStep.CONFIRM:
            raise InvalidTransitionError(f"Cannot show the result from step {int(self.step)}")
        if self._ctx.encryption is None:
            raise InvalidTransitionError("Cannot show the result before an encryption succeeded")
        self.show(WizardStep.RESULT)


__all__ = [
    "InvalidTransitionError",
    "StepController",
    "build_confirmation",
    "validate_step2",
]
