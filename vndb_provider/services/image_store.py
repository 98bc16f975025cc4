"""Image store that downloads cover images to a local directory."""

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Protocol
from urllib.parse import urlparse

import httpx
import structlog

from .errors import ImageDownloadError

log = structlog.stdlib.get_logger()


class ImageFetcher(Protocol):
    """Anything that can turn an image URL into a stored-image reference."""

    async def download_by_url(self, url: str) -> Any: ...


@dataclass(frozen=True)
class StoredImage:
    """Reference to an image saved by ``FileImageStore``."""
    source_url: str
    path: Path
    size: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "source_url": self.source_url,
            "path": str(self.path),
            "size": self.size,
        }


class FileImageStore:
    """Downloads images into a directory, one file per source URL."""

    def __init__(
        self,
        directory: Path,
        timeout: float = 30.0,
        user_agent: str = "VNDB-Metadata-Provider/1.0",
        chunk_size: int = 8192,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.directory = directory
        self.chunk_size = chunk_size

        client_kwargs: dict[str, Any] = {
            "timeout": httpx.Timeout(timeout),
            "headers": {"User-Agent": user_agent},
            "follow_redirects": True,
        }
        if transport is not None:
            client_kwargs["transport"] = transport
        self._client = httpx.AsyncClient(**client_kwargs)

    @staticmethod
    def file_name_for(url: str) -> str:
        """Derive a stable file name from an image URL.

        ``https://t.vndb.org/cv/31/51931.jpg`` becomes ``cv_31_51931.jpg``.
        """
        parts = [part for part in urlparse(url).path.split("/") if part]
        if not parts:
            raise ImageDownloadError("Image URL has no path", url=url)
        return "_".join(parts)

    async def download_by_url(self, url: str) -> StoredImage:
        """Download an image and return where it was stored.

        Raises:
            ImageDownloadError: If the image cannot be fetched or written
        """
        path = self.directory / self.file_name_for(url)

        if path.exists() and path.stat().st_size > 0:
            log.debug("Image already stored", url=url, path=str(path))
            return StoredImage(source_url=url, path=path, size=path.stat().st_size)

        # Only complete downloads are ever renamed onto the final path
        part_path = path.with_suffix(path.suffix + ".part")
        try:
            path.parent.mkdir(parents=True, exist_ok=True)

            async with self._client.stream("GET", url) as response:
                response.raise_for_status()

                total_size = int(response.headers.get("content-length", 0))
                downloaded = 0

                with open(part_path, "wb") as f:
                    async for chunk in response.aiter_bytes(self.chunk_size):
                        f.write(chunk)
                        downloaded += len(chunk)

            if total_size > 0 and downloaded != total_size:
                log.warning(
                    "Downloaded image size mismatch",
                    url=url,
                    expected=total_size,
                    actual=downloaded,
                )
                raise ImageDownloadError(
                    f"Image size mismatch: expected {total_size}, got {downloaded}",
                    url=url,
                )

            part_path.replace(path)

        except (httpx.HTTPError, OSError) as e:
            raise ImageDownloadError(
                f"Failed to download image from {url}",
                url=url,
                original_error=e,
            ) from e

        finally:
            if part_path.exists():
                try:
                    part_path.unlink()
                    log.debug("Cleaned up partial image", path=str(part_path))
                except OSError:
                    log.warning("Failed to clean up partial image", path=str(part_path))

        log.info("Image stored", url=url, path=str(path), size=downloaded)
        return StoredImage(source_url=url, path=path, size=downloaded)

    async def close(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "FileImageStore":
        return self

    async def __aexit__(self, exc_type: type[Exception] | None, exc_val: Exception | None, exc_tb: Any) -> None:
        await self.close()
