"""Media store: upload a file, get back a public URL."""

import mimetypes
from pathlib import Path

from core.api.client import ApiClient, ApiError

UPLOAD_PATH = "/prospecta/upload"


class MediaStore:
    def __init__(self, client: ApiClient) -> None:
        self._client = client

    async def upload(self, filename: str, content: bytes, mime_type: str) -> str:
        """Upload bytes and return the stored file URL."""
        data = await self._client.upload(UPLOAD_PATH, filename, content, mime_type)
        url = (data.get("fileUrl") or data.get("url")) if isinstance(data, dict) else None
        if not url:
            raise ApiError("Upload response carried no URL")
        return str(url)

    async def upload_path(self, path: Path) -> tuple[str, str]:
        """Upload a local file. Returns (url, mime_type)."""
        mime_type = mimetypes.guess_type(path.name)[0] or "application/octet-stream"
        url = await self.upload(path.name, path.read_bytes(), mime_type)
        return url, mime_type
