"""
Client side of the ephemeral clipboard.

ShareComposer collects text snippets and files into a pending list, encodes
files as data: URLs (concurrently, one task per file) and submits the list
through ShareClient, a small httpx client of the /shares API.
"""
import asyncio
import base64
import logging
import mimetypes
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterable, List, Optional, Tuple, Union
from urllib.parse import unquote_to_bytes

import httpx

from clipdash.config import MAX_FILE_SIZE
from clipdash.models import Share, ShareItem, ShareItemIn
from clipdash.security import sanitize_filename
from clipdash.utils.code_generator import normalize_code

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]
DEFAULT_MIME_TYPE = "application/octet-stream"


class ShareClientError(Exception):
    """A failed API call, carrying the server's error message."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


def encode_file(path: Path) -> Tuple[str, str, int]:
    """
    Read a file and encode it as a data: URL.

    Returns:
        (data URL, MIME type, original size in bytes)
    """
    data = path.read_bytes()
    mime_type = mimetypes.guess_type(path.name)[0] or DEFAULT_MIME_TYPE
    encoded = base64.b64encode(data).decode("ascii")
    return f"data:{mime_type};base64,{encoded}", mime_type, len(data)


def decode_file_item(item: ShareItem) -> bytes:
    """
    Decode the bytes of a file item.

    Raises:
        ValueError: If the item is not a file or its content is not a data: URL
    """
    if item.kind != "file" or not item.content.startswith("data:") or "," not in item.content:
        raise ValueError(f"Item {item.id} is not an encoded file")
    header, payload = item.content.split(",", 1)
    if header.endswith(";base64"):
        return base64.b64decode(payload)
    return unquote_to_bytes(payload)


def save_file_item(item: ShareItem, directory: PathLike) -> Path:
    """Write a file item under `directory` using its sanitized name."""
    target = Path(directory) / sanitize_filename(item.file_name or item.id)
    target.write_bytes(decode_file_item(item))
    return target


@dataclass
class PendingItem:
    """An item waiting for submission, identified by a local id."""
    id: str
    item: ShareItemIn


class ShareClient:
    """Async client for the /shares API."""

    def __init__(
        self,
        base_url: str = "http://localhost:8000",
        http_client: Optional[httpx.AsyncClient] = None,
        timeout: float = 10.0,
    ):
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(base_url=base_url, timeout=timeout)

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        await self.aclose()

    async def aclose(self):
        if self._owns_client:
            await self._client.aclose()

    async def _request(self, method: str, path: str, **kwargs) -> dict:
        try:
            resp = await self._client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            logger.warning(f"{method} {path} failed: {e}")
            raise ShareClientError("Impossible de joindre le serveur") from e

        try:
            data = resp.json()
        except ValueError:
            data = {}

        if resp.status_code >= 400:
            message = data.get("error") if isinstance(data, dict) else None
            raise ShareClientError(message or "Erreur inconnue", resp.status_code)
        return data

    async def create(self, items: List[ShareItemIn]) -> str:
        payload = [item.model_dump(by_alias=True, exclude_none=True) for item in items]
        data = await self._request("POST", "/shares", json={"items": payload})
        return data["code"]

    async def retrieve(self, code: str) -> Share:
        data = await self._request("GET", f"/shares/{normalize_code(code)}")
        return Share.model_validate(data["share"])

    async def delete(self, code: str) -> str:
        data = await self._request("DELETE", f"/shares/{normalize_code(code)}")
        return data["message"]


class ShareComposer:
    """
    In-memory list of items to share.

    File encoding runs as independent tasks; each task appends its own item
    when done, so the pending list follows completion order, not selection
    order. Items are always addressed by their local id.
    """

    def __init__(self, encoder: Callable[[Path], Tuple[str, str, int]] = encode_file):
        self._encoder = encoder
        self._items: List[PendingItem] = []
        self.errors: List[str] = []
        self.share_code: Optional[str] = None

    @property
    def items(self) -> List[PendingItem]:
        return list(self._items)

    def __len__(self):
        return len(self._items)

    def add_text(self, text: str) -> Optional[PendingItem]:
        """Append a text item. Blank input is ignored."""
        text = (text or "").strip()
        if not text:
            return None
        pending = PendingItem(id=f"text-{uuid.uuid4().hex[:12]}", item=ShareItemIn(kind="text", content=text))
        self._items.append(pending)
        self.errors = []
        return pending

    async def _add_file(self, item_id: str, path: Path) -> Optional[PendingItem]:
        try:
            content, mime_type, size = await asyncio.to_thread(self._encoder, path)
        except Exception as e:
            logger.warning(f"Could not encode {path}: {e}")
            self.errors.append(f'Impossible de lire le fichier "{path.name}"')
            return None

        # The file may have grown since stat()
        if size > MAX_FILE_SIZE:
            self.errors.append(f'Le fichier "{path.name}" est trop volumineux (max 2MB par fichier)')
            return None

        pending = PendingItem(
            id=item_id,
            item=ShareItemIn(
                kind="file",
                content=content,
                file_name=path.name,
                file_type=mime_type,
                file_size=size,
            ),
        )
        self._items.append(pending)
        return pending

    async def add_files(self, paths: Iterable[PathLike]) -> List[PendingItem]:
        """
        Encode and append files. Files over 2MB are skipped with a message in
        `errors`; the rest of the batch is still processed.

        Returns:
            The items added by this call, in completion order
        """
        self.errors = []
        tasks = []
        for raw_path in paths:
            path = Path(raw_path)
            try:
                size = path.stat().st_size
            except OSError:
                self.errors.append(f'Impossible de lire le fichier "{path.name}"')
                continue
            if size > MAX_FILE_SIZE:
                self.errors.append(f'Le fichier "{path.name}" est trop volumineux (max 2MB par fichier)')
                continue
            tasks.append(self._add_file(f"file-{uuid.uuid4().hex[:12]}", path))

        added_ids = {p.id for p in await asyncio.gather(*tasks) if p is not None}
        return [p for p in self._items if p.id in added_ids]

    def remove(self, item_id: str) -> bool:
        """Remove a pending item by its local id."""
        for index, pending in enumerate(self._items):
            if pending.id == item_id:
                del self._items[index]
                return True
        return False

    def clear(self):
        self._items = []

    async def submit(self, client: ShareClient) -> Optional[str]:
        """
        Send every pending item as one share.

        The pending list is cleared only when the server returns a code; on
        failure the message goes to `errors` and the list is kept.
        """
        if not self._items:
            self.errors = ["Ajoutez au moins un élément à partager"]
            return None

        self.errors = []
        try:
            code = await client.create([p.item for p in self._items])
        except ShareClientError as e:
            self.errors.append(e.message)
            return None

        self.share_code = code
        self.clear()
        return code
