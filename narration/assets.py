"""Voice model prefetch - download missing model files before a job renders.

Files are fetched one at a time, in catalog order, with no retry. Each file
streams into a ".part" sibling that is renamed into place only once it is
complete, so an interrupted download is simply fetched again next time.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import httpx

from .errors import AssetDownloadError
from .progress import ProgressReporter
from .tts import VOICE_CATALOG, voice_files, voice_urls

log = logging.getLogger("assets")


@dataclass(frozen=True)
class Asset:
    name: str
    url: str
    path: Path


def required_assets(model_dir: Path, repo_url: str) -> list[Asset]:
    """Every model and config file the voice table needs."""
    assets = []
    for entry in VOICE_CATALOG:
        names = voice_files(entry["id"])
        urls = voice_urls(entry["id"], repo_url)
        for name, url in zip(names, urls):
            assets.append(Asset(name=name, url=url, path=Path(model_dir) / name))
    return assets


def missing_assets(model_dir: Path, repo_url: str) -> list[Asset]:
    return [a for a in required_assets(model_dir, repo_url) if not a.path.exists()]


async def download_file(client: httpx.AsyncClient, asset: Asset) -> int:
    """Stream one asset to disk. Returns the number of bytes written."""
    asset.path.parent.mkdir(parents=True, exist_ok=True)
    part = asset.path.with_name(asset.path.name + ".part")
    written = 0
    try:
        async with client.stream("GET", asset.url, follow_redirects=True) as resp:
            if resp.status_code != 200:
                raise AssetDownloadError(f"Failed to download {asset.url}: HTTP {resp.status_code}")
            with open(part, "wb") as fh:
                async for chunk in resp.aiter_bytes():
                    fh.write(chunk)
                    written += len(chunk)
        part.replace(asset.path)
    except httpx.HTTPError as e:
        raise AssetDownloadError(f"Failed to download {asset.url}: {e}") from e
    except OSError as e:
        raise AssetDownloadError(f"Failed to save {asset.path}: {e}") from e
    finally:
        part.unlink(missing_ok=True)
    return written


async def ensure_assets(
    model_dir: Path,
    repo_url: str,
    reporter: Optional[ProgressReporter] = None,
    client: Optional[httpx.AsyncClient] = None,
    timeout: float = 120.0,
) -> list[Path]:
    """Download whatever is missing. Returns the paths that were fetched.

    Any failure raises AssetDownloadError and stops immediately.
    """
    assets = required_assets(model_dir, repo_url)
    todo = [(i, a) for i, a in enumerate(assets) if not a.path.exists()]
    if not todo:
        log.debug("All %d voice files present in %s", len(assets), model_dir)
        return []

    owns_client = client is None
    if owns_client:
        client = httpx.AsyncClient(timeout=timeout)

    fetched = []
    try:
        for i, asset in todo:
            if reporter:
                reporter.emit(f"Downloading voice: {asset.name}", i / len(assets), "download")
            log.info("Downloading %s ...", asset.url)
            size = await download_file(client, asset)
            log.info("Downloaded %s (%d bytes)", asset.path, size)
            if reporter:
                reporter.emit(f"Downloaded {asset.name}", 1.0, "download")
            fetched.append(asset.path)
    finally:
        if owns_client:
            await client.aclose()
    return fetched
