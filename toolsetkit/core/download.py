"""
Network download manager with progress tracking and retry logic.

This module provides the Fetcher used to acquire remote tools and the
toolchain manager:
- HTTP/HTTPS downloads with TLS verification
- Optional proxies (taken from the toolset manifest)
- Progress reporting (bytes, percentage, speed, ETA)
- Retry logic with exponential backoff
- Timeout handling
"""

import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, Optional

import requests
from requests.exceptions import RequestException

from toolsetkit.core.exceptions import FetchFailedError

logger = logging.getLogger(__name__)


@dataclass
class DownloadProgress:
    """Progress information for a download."""

    bytes_downloaded: int
    total_bytes: int
    percentage: float
    speed_bps: float  # bytes per second
    eta_seconds: float

    def __str__(self) -> str:
        return format_progress(self)


def proxy_mapping(proxy) -> Optional[Dict[str, str]]:
    """
    Convert a manifest proxy block into a ``requests`` proxies mapping.

    Args:
        proxy: Object with optional ``http``, ``https`` and ``no_proxy``
            attributes, or None

    Returns:
        Mapping suitable for ``requests.get(proxies=...)``, or None when no
        proxy is configured
    """
    if proxy is None:
        return None

    proxies = {}
    if proxy.http:
        proxies["http"] = proxy.http
    if proxy.https:
        proxies["https"] = proxy.https
    if proxy.no_proxy:
        proxies["no_proxy"] = proxy.no_proxy
    return proxies or None


def download_file(
    url: str,
    destination: Path,
    proxies: Optional[Dict[str, str]] = None,
    progress_callback: Optional[Callable[[DownloadProgress], None]] = None,
    timeout: int = 30,
    max_retries: int = 3,
) -> Path:
    """
    Download file from URL to destination with retry logic.

    Args:
        url: URL to download from
        destination: Local path to save file
        proxies: Optional ``requests`` proxies mapping
        progress_callback: Optional callback for progress updates
        timeout: Request timeout in seconds
        max_retries: Maximum number of attempts

    Returns:
        Path to downloaded file

    Raises:
        FetchFailedError: If download fails after retries
        ValueError: If URL or destination is invalid

    Example:
        >>> url = "https://example.com/tool.tar.gz"
        >>> download_file(url, Path("temp/tool.tar.gz"))
    """
    if not url:
        raise ValueError("URL cannot be empty")

    if not destination:
        raise ValueError("Destination path cannot be empty")

    destination = Path(destination)
    destination.parent.mkdir(parents=True, exist_ok=True)

    for attempt in range(max_retries):
        try:
            return _download_with_progress(
                url=url,
                destination=destination,
                proxies=proxies,
                progress_callback=progress_callback,
                timeout=timeout,
            )
        except RequestException as e:
            if attempt == max_retries - 1:
                raise FetchFailedError(
                    f"Download of {url} failed after {max_retries} attempts: {e}"
                ) from e

            backoff_seconds = 2**attempt
            logger.warning(
                f"Download attempt {attempt + 1} failed: {e}. "
                f"Retrying in {backoff_seconds}s..."
            )
            time.sleep(backoff_seconds)

    raise FetchFailedError(f"Download of {url} failed")


def _download_with_progress(
    url: str,
    destination: Path,
    proxies: Optional[Dict[str, str]],
    progress_callback: Optional[Callable[[DownloadProgress], None]],
    timeout: int,
) -> Path:
    """
    Perform download with streaming and progress updates.

    This is an internal function called by download_file().
    """
    logger.debug(f"Downloading from {url}")

    response = requests.get(
        url, stream=True, timeout=timeout, allow_redirects=True, proxies=proxies
    )
    response.raise_for_status()

    content_length = response.headers.get("content-length")
    total_size = int(content_length) if content_length else 0

    downloaded = 0
    start_time = time.time()
    last_progress_time = start_time

    with open(destination, "wb") as f:
        for chunk in response.iter_content(chunk_size=8192):
            if not chunk:
                continue
            f.write(chunk)
            downloaded += len(chunk)

            # Report progress at most twice per second
            current_time = time.time()
            if progress_callback and (
                current_time - last_progress_time >= 0.5 or downloaded == total_size
            ):
                elapsed = current_time - start_time
                speed = downloaded / elapsed if elapsed > 0 else 0
                remaining = total_size - downloaded if total_size > 0 else 0
                eta = remaining / speed if speed > 0 else 0

                progress_callback(
                    DownloadProgress(
                        bytes_downloaded=downloaded,
                        total_bytes=total_size if total_size > 0 else downloaded,
                        percentage=(downloaded / total_size * 100)
                        if total_size > 0
                        else 0,
                        speed_bps=speed,
                        eta_seconds=eta,
                    )
                )
                last_progress_time = current_time

    logger.debug(f"Download complete: {destination}")
    return destination


def format_progress(progress: DownloadProgress) -> str:
    """
    Format progress for display.

    Example:
        >>> progress = DownloadProgress(52428800, 104857600, 50.0, 1048576, 50)
        >>> print(format_progress(progress))
        50.0/100.0 MB (50.0%) at 1.0 MB/s ETA: 50s
    """
    mb_downloaded = progress.bytes_downloaded / 1024 / 1024
    mb_total = progress.total_bytes / 1024 / 1024
    speed_mbps = progress.speed_bps / 1024 / 1024

    if progress.total_bytes > 0:
        return (
            f"{mb_downloaded:.1f}/{mb_total:.1f} MB "
            f"({progress.percentage:.1f}%) "
            f"at {speed_mbps:.1f} MB/s "
            f"ETA: {progress.eta_seconds:.0f}s"
        )
    return f"{mb_downloaded:.1f} MB at {speed_mbps:.1f} MB/s"


class Fetcher:
    """
    Downloads files for the installer.

    Streams each download to its destination and reports progress through
    the module logger.
    """

    def __init__(self, timeout: int = 30, max_retries: int = 3):
        self.timeout = timeout
        self.max_retries = max_retries

    def download(self, display_name: str, url: str, dest: Path, proxy=None) -> Path:
        """
        Download ``url`` to ``dest``.

        Args:
            display_name: Name shown in progress messages
            url: URL to download
            dest: Destination file path
            proxy: Optional manifest proxy block

        Raises:
            FetchFailedError: If the download fails
        """
        logger.info(f"downloading '{display_name}'")

        def on_progress(progress: DownloadProgress) -> None:
            logger.debug(f"{display_name}: {progress}")

        return download_file(
            url,
            Path(dest),
            proxies=proxy_mapping(proxy),
            progress_callback=on_progress,
            timeout=self.timeout,
            max_retries=self.max_retries,
        )
