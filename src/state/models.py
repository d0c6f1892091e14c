from __future__ import annotations

from enum import IntEnum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class WizardStep(IntEnum):
    UPLOAD = 1
    PARAMETERS = 2
    CONFIRM = 3
    RESULT = 4


def _initial_steps() -> Dict[WizardStep, bool]:
    return {s: s is WizardStep.UPLOAD for s in WizardStep}


def _initial_controls() -> Dict[str, bool]:
    # Forward navigation from step 1 opens only after a successful upload
    return {
        "next_to_step2": False,
        "start_encrypt": True,
        "back_to_step2": True,
    }


class FormFields(BaseModel):
    """
    Values of the step-2 form.

    Fields
    - packages: comma/line separated package names to encrypt (required).
    - password: encryption password; required unless `nopwd` is set.
    - exclude: optional class names to leave untouched.
    - libjars: also encrypt bundled library jars.
    - nopwd: no-password mode; hides the password group and drops its required flag.
    """

    packages: str = ""
    password: str = ""
    exclude: str = ""
    libjars: bool = False
    nopwd: bool = False

    @property
    def password_required(self) -> bool:
        return not self.nopwd

    @property
    def password_visible(self) -> bool:
        return not self.nopwd


class Confirmation(BaseModel):
    """Read-only summary rendered on entry to step 3."""

    model_config = ConfigDict(frozen=True)

    filename: str
    packages: str
    mode: str
    exclude: str
    libjars: str


class FileInfo(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    size: str


class WizardView(BaseModel):
    """
    The visible surface of the wizard.

    - steps: one marker per step; exactly one is True.
    - controls: enablement of the next/start/back buttons, keyed by control name.
    - busy: spinner shown while an encryption request is in flight.
    - inline_error: the step-2 validation message region (None when empty).
    - alerts: user-facing failure messages in the order they were raised.
    - file_info / encrypted_info: metadata shown after upload / encryption.
    """

    steps: Dict[WizardStep, bool] = Field(default_factory=_initial_steps)
    controls: Dict[str, bool] = Field(default_factory=_initial_controls)
    busy: bool = False
    inline_error: Optional[str] = None
    alerts: List[str] = Field(default_factory=list)
    file_info: Optional[FileInfo] = None
    encrypted_info: Optional[FileInfo] = None
    confirmation: Optional[Confirmation] = None

    @property
    def active_step(self) -> WizardStep:
        return next(s for s, on in self.steps.items() if on)

    def active_steps(self) -> List[WizardStep]:
        return [s for s, on in self.steps.items() if on]

    def is_enabled(self, control: str) -> bool:
        return self.controls.get(control, False)


__all__ = [
    "Confirmation",
    "FileInfo",
    "FormFields",
    "WizardStep",
    "WizardView",
]
