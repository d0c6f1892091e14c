"""
Session state for one wizard run.

`SessionContext` owns the upload and encryption results together with the
form values and the visible view; `reset()` returns it to the initial state.
"""

from .context import SessionContext
from .models import Confirmation, FileInfo, FormFields, WizardStep, WizardView

__all__ = [
    "Confirmation",
    "FileInfo",
    "FormFields",
    "SessionContext",
    "WizardStep",
    "WizardView",
]
