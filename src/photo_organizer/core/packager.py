"""Package a folder manifest into a zip archive."""

import logging
import time
import zipfile
from pathlib import Path, PurePosixPath
from typing import Callable, Dict, Optional, Set

from ..exceptions import PackagingError
from .manifest import FolderManifest

logger = logging.getLogger(__name__)

# (completed files, total files, current file name)
ProgressCallback = Callable[[int, int, str], None]

_COMPRESSION = {
    "deflated": zipfile.ZIP_DEFLATED,
    "stored": zipfile.ZIP_STORED,
}


def default_archive_name(prefix: str = "organized-photos") -> str:
    return f"{prefix}-{int(time.time() * 1000)}.zip"


def _resolve_duplicate(name: str, taken: Set[str]) -> str:
    """Resolve duplicate entry names by adding a number."""
    if name not in taken:
        return name

    path = PurePosixPath(name)
    counter = 1
    while True:
        new_name = f"{path.stem} ({counter}){path.suffix}"
        if new_name not in taken:
            return new_name
        counter += 1


class ZipArchivePackager:
    """Write each folder as a top-level directory of a zip archive."""

    def __init__(self, compression: str = "deflated", prefix: str = "organized-photos"):
        if compression not in _COMPRESSION:
            raise PackagingError(f"Unknown compression '{compression}'")
        self.compression = _COMPRESSION[compression]
        self.prefix = prefix

    def package(
        self,
        manifest: FolderManifest,
        destination: Path,
        progress: Optional[ProgressCallback] = None,
    ) -> Path:
        """Write ``manifest`` to a zip archive.

        Args:
            manifest: The folders to package
            destination: Archive path, or an existing directory in which a
                timestamped archive name is generated
            progress: Called after every file is written

        Returns:
            Path of the written archive

        Raises:
            PackagingError: If a file has no source on disk or cannot be read.
                No partial archive is left behind.
        """
        destination = Path(destination)
        if destination.is_dir():
            destination = destination / default_archive_name(self.prefix)

        total = manifest.total_files
        completed = 0
        try:
            with zipfile.ZipFile(destination, 'w', compression=self.compression) as archive:
                for folder in manifest:
                    taken: Set[str] = set()
                    for photo in folder.files:
                        if photo.path is None:
                            raise PackagingError(f"No source file for '{photo.name}'")
                        entry_name = _resolve_duplicate(photo.name, taken)
                        taken.add(entry_name)
                        archive.write(photo.path, arcname=f"{folder.name}/{entry_name}")

                        completed += 1
                        if progress:
                            progress(completed, total, photo.name)
        except PackagingError:
            destination.unlink(missing_ok=True)
            raise
        except (OSError, zipfile.BadZipFile) as e:
            destination.unlink(missing_ok=True)
            raise PackagingError(f"Download failed: {e}") from e

        logger.info(f"Packaged {completed} files in {len(manifest)} folders into {destination}")
        return destination


def archive_listing(archive_path: Path) -> Dict[str, list]:
    """Map each top-level folder of an archive to its entry names."""
    listing: Dict[str, list] = {}
    with zipfile.ZipFile(archive_path) as archive:
        for entry in archive.namelist():
            folder, _, name = entry.partition('/')
            listing.setdefault(folder, []).append(name)
    return listing
