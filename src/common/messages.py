from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional


DEFAULT_LOCALE = "en"


@dataclass(frozen=True)
class Messages:
    """User-facing strings for one locale.

    Attributes
    - packages_required / password_required: inline errors shown by step 2 validation
    - upload_failed / encrypt_failed / download_failed: alert prefixes, followed by the reason
    - mode_password / mode_no_password: confirmation mode labels
    - none_placeholder: shown for an empty exclude field
    - yes / no: labels for the "include library jars" flag
    """

    packages_required: str
    password_required: str
    upload_failed: str
    encrypt_failed: str
    download_failed: str
    mode_password: str
    mode_no_password: str
    none_placeholder: str
    yes: str
    no: str

    def upload_alert(self, reason: str) -> str:
        return f"{self.upload_failed}: {reason}"

    def encrypt_alert(self, reason: str) -> str:
        return f"{self.encrypt_failed}: {reason}"

    def download_alert(self, reason: str) -> str:
        return f"{self.download_failed}: {reason}"

    def mode_label(self, nopwd: bool) -> str:
        return self.mode_no_password if nopwd else self.mode_password

    def yes_no(self, flag: bool) -> str:
        return self.yes if flag else self.no


CATALOG: Dict[str, Messages] = {
    "en": Messages(
        packages_required="Please enter the packages to encrypt",
        password_required="Please enter a password or choose no-password mode",
        upload_failed="Upload failed",
        encrypt_failed="Encryption failed",
        download_failed="Download failed",
        mode_password="password",
        mode_no_password="no-password",
        none_placeholder="none",
        yes="yes",
        no="no",
    ),
    "zh": Messages(
        packages_required="请输入要加密的包名",
        password_required="请输入加密密码或选择无密码模式",
        upload_failed="上传失败",
        encrypt_failed="加密失败",
        download_failed="下载失败",
        mode_password="密码模式",
        mode_no_password="无密码模式",
        none_placeholder="无",
        yes="是",
        no="否",
    ),
}


def get_messages(locale: Optional[str] = None) -> Messages:
    """Return the catalog for `locale` ("zh_CN" matches "zh"), else English."""
    if not locale:
        return CATALOG[DEFAULT_LOCALE]
    key = locale.strip().lower().replace("-", "_")
    if key in CATALOG:
        return CATALOG[key]
    return CATALOG.get(key.split("_", 1)[0], CATALOG[DEFAULT_LOCALE])


__all__ = ["Messages", "CATALOG", "DEFAULT_LOCALE", "get_messages"]
