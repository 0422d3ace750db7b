"""
Tool acquisition: turn a LocalPath or Remote descriptor into local files.

Remote tools are downloaded into a ``download_*`` scratch directory first.
Either way the source is then extracted (archives) or copied into a
per-tool scratch directory, so installers never touch the user's original
files. All scratch directories belong to the AcquiredArtifact and are
removed when its context exits, whether the install succeeded or not.
"""

import logging
from contextlib import ExitStack, contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, Optional
from urllib.parse import unquote, urlsplit

from toolsetkit.config.manifest import ToolDescriptor, ToolKind
from toolsetkit.core.download import Fetcher
from toolsetkit.core.exceptions import MissingSourceError, UnusableUrlError
from toolsetkit.core.filesystem import Extractor, copy_into

logger = logging.getLogger(__name__)


@dataclass
class AcquiredArtifact:
    """
    A tool's files, ready to install.

    Attributes:
        tool_name: Name of the tool
        local_path: Extracted directory or copied file
        temp_guard: Owner of the scratch directories behind ``local_path``
    """

    tool_name: str
    local_path: Path
    temp_guard: ExitStack


def url_file_name(url: str) -> str:
    """
    Get the file name a URL downloads to: its last path segment.

    Raises:
        UnusableUrlError: If the URL has no path segments, the last one is
            empty, or it decodes to a path rather than a file name

    Example:
        >>> url_file_name("https://example.com/pkg/tool.tar.gz")
        'tool.tar.gz'
    """
    parts = urlsplit(url)
    if not parts.scheme or not parts.netloc:
        raise UnusableUrlError(url, "is not a supported url format")

    last_segment = parts.path.split("/")[-1]
    if not last_segment:
        raise UnusableUrlError(url)

    file_name = unquote(last_segment)
    if file_name in (".", "..") or any(sep in file_name for sep in "/\\"):
        raise UnusableUrlError(url, "does not name a file")
    return file_name


def extract_or_copy_to(
    source: Path, destination: Path, extractor: Optional[Extractor] = None
) -> Path:
    """
    Extract ``source`` into ``destination`` if it is an archive, else copy it.

    Returns:
        ``destination`` after an extraction, otherwise the path of the copy
    """
    extractor = extractor or Extractor()
    if extractor.try_classify(source) is not None:
        extractor.extract(source, destination)
        return destination
    return copy_into(source, destination)


@contextmanager
def acquire_tool(
    config,
    name: str,
    descriptor: ToolDescriptor,
    proxy=None,
    fetcher: Optional[Fetcher] = None,
    extractor: Optional[Extractor] = None,
) -> Iterator[AcquiredArtifact]:
    """
    Produce local, installable files for an unmanaged tool.

    Args:
        config: InstallConfiguration of the session
        name: Tool name
        descriptor: A LocalPath or Remote descriptor
        proxy: Optional manifest proxy block used for downloads
        fetcher: Fetcher for Remote tools
        extractor: Archive extractor

    Yields:
        The AcquiredArtifact; its scratch directories are removed on exit

    Raises:
        MissingSourceError: If a LocalPath does not exist
        UnusableUrlError: If a Remote URL has no file name
        ValueError: If the descriptor is a managed one
    """
    with ExitStack() as guard:
        if descriptor.kind is ToolKind.LOCAL_PATH:
            source = Path(descriptor.path)
            if not source.exists():
                raise MissingSourceError(name, source)
        elif descriptor.kind is ToolKind.REMOTE:
            file_name = url_file_name(descriptor.url)
            download_dir = Path(guard.enter_context(config.create_temp_dir("download")))
            source = download_dir / file_name
            (fetcher or Fetcher()).download(name, descriptor.url, source, proxy)
        else:
            raise ValueError(
                f"'{name}' is installed by the package manager, not acquired"
            )

        scratch = Path(guard.enter_context(config.create_temp_dir(name)))
        local_path = extract_or_copy_to(source, scratch, extractor)
        logger.debug(f"Acquired '{name}' at {local_path}")

        yield AcquiredArtifact(name, local_path, guard)
