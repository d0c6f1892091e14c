"""
Four-step archive encryption wizard.

Upload -> parameters -> confirmation -> result/download, driven by
`Wizard` over a single `state.SessionContext`.
"""

from .app import Wizard
from .config import WizardConfig
from .download import DownloadTrigger, HttpDownloader
from .encrypt import EncryptOrchestrator
from .steps import InvalidTransitionError, StepController, validate_step2
from .upload import SelectedFile, UploadHandler

__all__ = [
    "DownloadTrigger",
    "EncryptOrchestrator",
    "HttpDownloader",
    "InvalidTransitionError",
    "SelectedFile",
    "StepController",
    "UploadHandler",
    "Wizard",
    "WizardConfig",
    "validate_step2",
]
