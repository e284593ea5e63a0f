"""Build PhotoFile records from paths on disk."""

import logging
import mimetypes
import time
from datetime import datetime
from pathlib import Path
from typing import Iterable, Iterator, List, Optional

from ..exceptions import PhotoOrganizerError
from ..models.photo_file import PhotoFile

logger = logging.getLogger(__name__)


def _batch_stamp() -> int:
    return int(time.time() * 1000)


def photo_from_path(path: Path, index: int = 0, batch: Optional[int] = None) -> PhotoFile:
    """Create a PhotoFile for a single file.

    Ids take the form ``file-<batch millis>-<index>``, unique within a batch.
    """
    stat = path.stat()
    content_type, _ = mimetypes.guess_type(path.name)
    return PhotoFile(
        id=f"file-{batch if batch is not None else _batch_stamp()}-{index}",
        name=path.name,
        size=stat.st_size,
        content_type=content_type or "",
        last_modified=datetime.fromtimestamp(stat.st_mtime),
        path=path,
    )


def _iter_files(path: Path, recursive: bool) -> Iterator[Path]:
    if path.is_file():
        yield path
        return
    candidates = path.rglob('*') if recursive else path.iterdir()
    for file_path in sorted(candidates):
        if not file_path.is_file():
            continue
        relative = file_path.relative_to(path)
        if any(part.startswith('.') for part in relative.parts):
            continue
        yield file_path


def scan_paths(paths: Iterable[Path], recursive: bool = True) -> List[PhotoFile]:
    """Collect files from files and directories.

    Directories are expanded (recursively by default); hidden files and
    anything inside hidden directories are skipped. Files are returned in
    the order given, directory contents sorted by path.
    """
    batch = _batch_stamp()
    photos: List[PhotoFile] = []
    for path in paths:
        path = Path(path)
        if not path.exists():
            raise PhotoOrganizerError(f"Path does not exist: {path}")
        for file_path in _iter_files(path, recursive):
            photos.append(photo_from_path(file_path, len(photos), batch))

    logger.info(f"Found {len(photos)} files")
    return photos
