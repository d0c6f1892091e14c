from __future__ import annotations

import re
from pathlib import Path
from typing import Any, Dict, Optional, Union
from urllib.parse import quote, unquote

import httpx
import structlog
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator


log = structlog.get_logger(__name__)

DEFAULT_BASE_URL = "http://localhost:8080"
UPLOAD_PATH = "/api/upload"
ENCRYPT_PATH = "/api/encrypt"
DOWNLOAD_PATH = "/api/download"


class BackendError(RuntimeError):
    """Base error for the encryption backend client."""


class BackendRejectedError(BackendError):
    """Backend answered with `success: false`; `message` is its text verbatim."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class BackendTransportError(BackendError):
    """Network failure or a response body that is not a usable envelope."""


Size = Union[int, float, str]


class UploadResult(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    file_id: str = Field(..., alias="fileId", description="Opaque id of the uploaded archive")
    filename: str
    size: Size


class EncryptionResult(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    encrypted_file_id: str = Field(..., alias="encryptedFileId")
    encrypted_filename: str = Field(..., alias="encryptedFilename")
    size: Size


class EncryptionRequest(BaseModel):
    """
    Body of `POST /api/encrypt`.

    Built fresh for every submission from the current upload and form values.
    `packages` is the raw comma/line separated text; the backend splits it.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    file_id: str = Field(..., alias="fileId")
    filename: str
    packages: str
    password: str = ""
    exclude: str = ""
    libjars: bool = False
    nopwd: bool = False

    @field_validator("packages")
    @classmethod
    def _packages_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("packages must not be empty")
        return v

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)


class _Envelope(BaseModel):
    # Every endpoint answers with { success, message?, ...payload }
    model_config = ConfigDict(extra="allow")

    success: bool
    message: Optional[str] = None


def download_path(file_id: str, filename: str) -> str:
    """Return the download path for an encrypted artifact."""
    return f"{DOWNLOAD_PATH}/{quote(file_id, safe='')}/{quote(filename, safe='')}"


_DISPOSITION_RE = re.compile(r'filename\*?=(?:UTF-8\'\')?"?([^";]+)"?', re.IGNORECASE)


def _filename_from_response(resp: httpx.Response) -> str:
    header = resp.headers.get("content-disposition", "")
    m = _DISPOSITION_RE.search(header)
    if m:
        name = unquote(m.group(1).strip())
    else:
        name = unquote(resp.request.url.path.rsplit("/", 1)[-1])
    # Never let the server pick a directory
    name = Path(name).name
    if name in ("", ".", ".."):
        return "download.bin"
    return name


class EncryptionBackendClient:
    """
    Async client for the archive-encryption backend.

    Notes
    - No client-side timeout: encrypting a large archive can take arbitrarily long.
    - No retries. Each failure surfaces once as a `BackendError` subclass so the
      caller can show it to the user.
    - Responses are parsed regardless of HTTP status: the backend reports
      failures through the JSON envelope, and a body that is not such an
      envelope is a transport failure.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        *,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        if not base_url:
            raise ValueError("base_url is required")
        self._base_url = base_url.rstrip("/")
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(base_url=self._base_url, timeout=None)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "EncryptionBackendClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    # --------------- Public API ---------------
    async def upload(
        self,
        filename: str,
        content: bytes,
        *,
        content_type: str = "application/java-archive",
    ) -> UploadResult:
        """Upload one archive as multipart field `file`."""
        files = {"file": (filename, content, content_type)}
        data = await self._request("POST", UPLOAD_PATH, files=files)
        try:
            return UploadResult.model_validate(data)
        except ValidationError as ve:
            raise BackendTransportError(f"Malformed upload response: {ve}") from ve

    async def encrypt(self, request: EncryptionRequest) -> EncryptionResult:
        data = await self._request("POST", ENCRYPT_PATH, json=request.to_wire())
        try:
            return EncryptionResult.model_validate(data)
        except ValidationError as ve:
            raise BackendTransportError(f"Malformed encrypt response: {ve}") from ve

    def download_url(self, file_id: str, filename: str) -> str:
        return f"{self._base_url}{download_path(file_id, filename)}"

    async def download(self, path: str, dest_dir: Union[str, Path]) -> Path:
        """
        Stream a binary artifact to `dest_dir` and return the written path.

        The file name comes from `Content-Disposition`, else the last URL segment.
        """
        out_dir = Path(dest_dir)
        out_dir.mkdir(parents=True, exist_ok=True)
        part: Optional[Path] = None
        try:
            async with self._client.stream("GET", path) as resp:
                if resp.status_code != 200:
                    body = (await resp.aread())[:200].decode("utf-8", "replace")
                    raise BackendTransportError(f"HTTP {resp.status_code} from backend: {body}")
                target = out_dir / _filename_from_response(resp)
                # Stream into a sibling and rename only once the body is complete
                part = target.with_name(target.name + ".part")
                with part.open("wb") as f:
                    async for chunk in resp.aiter_bytes():
                        f.write(chunk)
            part.replace(target)
        except httpx.HTTPError as exc:
            if part is not None:
                part.unlink(missing_ok=True)
            raise BackendTransportError(_describe(exc)) from exc
        log.info("download.saved", path=str(target))
        return target

    # --------------- Internal ---------------
    async def _request(self, method: str, path: str, **kwargs: Any) -> Dict[str, Any]:
        try:
            resp = await self._client.request(method, path, **kwargs)
        except httpx.HTTPError as exc:
            log.warning("backend.transport_error", path=path, error=_describe(exc))
            raise BackendTransportError(_describe(exc)) from exc

        try:
            payload = resp.json()
        except ValueError as exc:  # JSON decode error
            raise BackendTransportError(
                f"HTTP {resp.status_code} from backend: {resp.text[:200]}"
            ) from exc

        try:
            envelope = _Envelope.model_validate(payload)
        except ValidationError as ve:
            raise BackendTransportError(f"Malformed response from backend: {ve}") from ve

        if not envelope.success:
            msg = envelope.message or f"HTTP {resp.status_code}"
            log.info("backend.rejected", path=path, message=msg)
            raise BackendRejectedError(msg)
        return payload  # type: ignore[return-value]


def _describe(exc: BaseException) -> str:
    text = str(exc)
    return text if text else type(exc).__name__


__all__ = [
    "BackendError",
    "BackendRejectedError",
    "BackendTransportError",
    "EncryptionBackendClient",
    "EncryptionRequest",
    "EncryptionResult",
    "UploadResult",
    "download_path",
]
