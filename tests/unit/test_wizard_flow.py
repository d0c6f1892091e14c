from __future__ import annotations

import asyncio
import json
from typing import Any, Dict, List

import httpx

from common.backend import EncryptionBackendClient
from common.messages import get_messages
from state.context import SessionContext
from state.models import WizardStep
from wizard.app import Wizard
from wizard.config import WizardConfig
from wizard.upload import SelectedFile


BASE = "http://backend.test"


class _FakeBackend:
    """Answers the three endpoints from planned payloads and records requests."""

    def __init__(self) -> None:
        self.upload_reply: Dict[str, Any] = {"success": True, "fileId": "f1", "filename": "app.jar", "size": 1024}
        self.encrypt_reply: Dict[str, Any] = {
            "success": True,
            "encryptedFileId": "e1",
            "encryptedFilename": "app-encrypted.jar",
            "size": 2048,
        }
        self.requests: List[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.url.path == "/api/upload":
            return httpx.Response(200, json=self.upload_reply)
        if request.url.path == "/api/encrypt":
            return httpx.Response(200, json=self.encrypt_reply)
        return httpx.Response(200, content=b"artifact")

    def paths(self) -> List[str]:
        return [r.url.path for r in self.requests]


class _RecordingNavigator:
    def __init__(self) -> None:
        self.visited: List[str] = []

    async def __call__(self, url: str) -> None:
        self.visited.append(url)


def _wizard(backend: _FakeBackend, locale: str = "en"):
    api = EncryptionBackendClient(BASE, client=httpx.AsyncClient(base_url=BASE, transport=httpx.MockTransport(backend)))
    nav = _RecordingNavigator()
    return Wizard(api, navigate=nav, messages=get_messages(locale)), nav


def test_full_run_with_no_password_mode():
    backend = _FakeBackend()
    wiz, nav = _wizard(backend)

    async def go():
        await wiz.select_file(SelectedFile("app.jar", b"PK"))
        assert wiz.ctx.view.is_enabled("next_to_step2")
        assert wiz.next() is True

        wiz.ctx.form.packages = "com.foo"
        wiz.ctx.form.nopwd = True
        assert wiz.ctx.form.password_visible is False
        assert wiz.next() is True
        assert wiz.step is WizardStep.CONFIRM
        assert wiz.ctx.view.confirmation is not None
        assert wiz.ctx.view.confirmation.mode == "no-password"

        await wiz.start_encryption()
        assert wiz.step is WizardStep.RESULT
        await wiz.download()

    asyncio.run(go())

    info = wiz.ctx.view.encrypted_info
    assert info is not None
    assert info.name == "app-encrypted.jar"
    assert info.size == "2048"
    assert wiz.download_url() == "/api/download/e1/app-encrypted.jar"
    assert nav.visited == ["/api/download/e1/app-encrypted.jar"]

    assert backend.paths() == ["/api/upload", "/api/encrypt"]
    body = json.loads(backend.requests[1].content)
    assert body["nopwd"] is True
    assert body["packages"] == "com.foo"


def test_empty_packages_keeps_step2_without_network_call():
    backend = _FakeBackend()
    wiz, _ = _wizard(backend)
    asyncio.run(wiz.select_file(SelectedFile("app.jar", b"PK")))
    wiz.next()

    wiz.ctx.form.packages = ""
    wiz.ctx.form.nopwd = True
    assert wiz.next() is False

    assert wiz.step is WizardStep.PARAMETERS
    assert wiz.ctx.view.inline_error == "Please enter the packages to encrypt"
    assert backend.paths() == ["/api/upload"]


def test_missing_password_keeps_step2():
    backend = _FakeBackend()
    wiz, _ = _wizard(backend)
    asyncio.run(wiz.select_file(SelectedFile("app.jar", b"PK")))
    wiz.next()

    wiz.ctx.form.packages = "com.foo"
    wiz.ctx.form.nopwd = False
    wiz.ctx.form.password = ""
    assert wiz.next() is False

    assert wiz.step is WizardStep.PARAMETERS
    assert wiz.ctx.view.inline_error == "Please enter a password or choose no-password mode"


def test_rejected_encryption_stays_on_step3_with_controls_enabled():
    backend = _FakeBackend()
    backend.encrypt_reply = {"success": False, "message": "bad password"}
    wiz, _ = _wizard(backend)

    async def go():
        await wiz.select_file(SelectedFile("app.jar", b"PK"))
        wiz.next()
        wiz.ctx.form.packages = "com.foo"
        wiz.ctx.form.password = "wrong"
        wiz.next()
        return await wiz.start_encryption()

    assert asyncio.run(go()) is None
    assert wiz.step is WizardStep.CONFIRM
    assert wiz.ctx.view.alerts == ["Encryption failed: bad password"]
    assert wiz.ctx.view.is_enabled("start_encrypt")
    assert wiz.ctx.view.is_enabled("back_to_step2")
    assert wiz.back() is True


def test_restart_returns_to_initial_state():
    backend = _FakeBackend()
    wiz, _ = _wizard(backend)

    async def go():
        await wiz.select_file(SelectedFile("app.jar", b"PK"))
        wiz.next()
        wiz.ctx.form.packages = "com.foo"
        wiz.ctx.form.nopwd = True
        wiz.next()
        await wiz.start_encryption()

    asyncio.run(go())
    assert wiz.ctx.upload is not None and wiz.ctx.encryption is not None

    ctx_before = wiz.ctx
    generation = wiz.ctx.generation
    wiz.restart()

    assert wiz.ctx is ctx_before
    assert wiz.ctx.generation == generation + 1
    assert wiz.ctx.upload is None
    assert wiz.ctx.encryption is None
    assert wiz.step is WizardStep.UPLOAD
    assert wiz.ctx.snapshot() == SessionContext().snapshot()
    assert wiz.next() is False


def test_restart_drops_encryption_still_in_flight():
    async def go():
        release = asyncio.Event()
        entered = asyncio.Event()
        backend = _FakeBackend()

        async def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path == "/api/encrypt":
                entered.set()
                await release.wait()
            return backend(request)

        api = EncryptionBackendClient(BASE, client=httpx.AsyncClient(base_url=BASE, transport=httpx.MockTransport(handler)))
        wiz = Wizard(api, navigate=_RecordingNavigator())
        await wiz.select_file(SelectedFile("app.jar", b"PK"))
        wiz.next()
        wiz.ctx.form.packages = "com.foo"
        wiz.ctx.form.nopwd = True
        wiz.next()

        pending = asyncio.create_task(wiz.start_encryption())
        await entered.wait()
        wiz.restart()
        release.set()
        return wiz, await pending

    wiz, result = asyncio.run(go())
    assert result is None
    assert wiz.ctx.snapshot() == SessionContext().snapshot()


def test_chinese_messages_flow_through_components():
    backend = _FakeBackend()
    wiz, _ = _wizard(backend, locale="zh")
    asyncio.run(wiz.select_file(SelectedFile("app.jar", b"PK")))
    wiz.next()
    assert wiz.next() is False
    assert wiz.ctx.view.inline_error == "请输入要加密的包名"

    wiz.ctx.form.packages = "com.foo"
    wiz.ctx.form.password = "pw"
    wiz.next()
    c = wiz.ctx.view.confirmation
    assert c is not None
    assert (c.mode, c.exclude, c.libjars) == ("密码模式", "无", "否")


def test_from_config_uses_locale_and_download_dir(tmp_path):
    backend = _FakeBackend()
    backend.encrypt_reply["encryptedFilename"] = "app-encrypted.jar"
    api = EncryptionBackendClient(BASE, client=httpx.AsyncClient(base_url=BASE, transport=httpx.MockTransport(backend)))
    config = WizardConfig(base_url=BASE, locale="zh", download_dir=str(tmp_path))
    wiz = Wizard.from_config(config, api)

    async def go():
        await wiz.select_file(SelectedFile("app.jar", b"PK"))
        wiz.next()
        wiz.ctx.form.packages = "com.foo"
        wiz.ctx.form.nopwd = True
        wiz.next()
        await wiz.start_encryption()
        return await wiz.download()

    saved = asyncio.run(go())
    assert wiz.ctx.view.confirmation is not None
    assert wiz.ctx.view.confirmation.mode == "无密码模式"
    assert saved == tmp_path / "app-encrypted.jar"
    assert saved.read_bytes() == b"artifact"
