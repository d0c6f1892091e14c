from __future__ import annotations

from typing import Any, Dict, Optional

from common.backend import EncryptionResult, UploadResult

from .models import FormFields, WizardStep, WizardView


class SessionContext:
    """
    Single owner of everything one wizard run knows.

    - upload: the latest successful upload (None until one succeeds).
    - encryption: the latest successful encryption (None until one succeeds).
    - form: current step-2 field values.
    - view: what the user currently sees.

    Components receive the context at construction and mutate it in place.
    `reset()` is the only way back to the initial state. `generation` counts
    resets so a response that outlives its run can be recognized and dropped.
    """

    def __init__(self) -> None:
        self.generation = 0
        self._clear()

    def _clear(self) -> None:
        self.upload: Optional[UploadResult] = None
        self.encryption: Optional[EncryptionResult] = None
        self.form = FormFields()
        self.view = WizardView()

    @property
    def step(self) -> WizardStep:
        return self.view.active_step

    def reset(self) -> None:
        self.generation += 1
        self._clear()

    def snapshot(self) -> Dict[str, Any]:
        """Plain-data copy of the whole session, used to compare states."""
        return {
            "upload": self.upload.model_dump() if self.upload else None,
            "encryption": self.encryption.model_dump() if self.encryption else None,
            "form": self.form.model_dump(),
            "view": self.view.model_dump(),
        }
