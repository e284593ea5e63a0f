"""Folder manifest: the summarized, ordered view of a classification run.

The builder only aggregates and orders the buckets it is given. It never
decides which folder a file belongs to.
"""

from dataclasses import dataclass, field
from typing import Iterator, List, Mapping, Sequence, Tuple

from ..models.photo_file import PhotoFile

UNORGANIZED_FOLDER = "Unorganized"


@dataclass(frozen=True)
class OrganizedFolder:
    """A destination folder and the files assigned to it, in input order."""
    name: str
    files: Tuple[PhotoFile, ...] = ()

    @property
    def count(self) -> int:
        return len(self.files)

    @property
    def total_size(self) -> int:
        return sum(f.size for f in self.files)

    @property
    def is_unorganized(self) -> bool:
        return self.name == UNORGANIZED_FOLDER


@dataclass(frozen=True)
class FolderManifest:
    """Folders sorted by file count, largest first."""
    folders: Tuple[OrganizedFolder, ...] = field(default_factory=tuple)

    def __iter__(self) -> Iterator[OrganizedFolder]:
        return iter(self.folders)

    def __len__(self) -> int:
        return len(self.folders)

    def __getitem__(self, name: str) -> OrganizedFolder:
        for folder in self.folders:
            if folder.name == name:
                return folder
        raise KeyError(name)

    def __contains__(self, name: object) -> bool:
        return any(folder.name == name for folder in self.folders)

    @property
    def names(self) -> List[str]:
        return [folder.name for folder in self.folders]

    @property
    def total_files(self) -> int:
        return sum(folder.count for folder in self.folders)

    @property
    def total_size(self) -> int:
        return sum(folder.total_size for folder in self.folders)

    @property
    def unorganized(self) -> Tuple[PhotoFile, ...]:
        if UNORGANIZED_FOLDER in self:
            return self[UNORGANIZED_FOLDER].files
        return ()

    def folder_of(self, file_id: str) -> str:
        """Name of the folder holding ``file_id``."""
        for folder in self.folders:
            if any(f.id == file_id for f in folder.files):
                return folder.name
        raise KeyError(file_id)

    def summary(self) -> List[Tuple[str, int, int]]:
        """``(name, count, total_size)`` rows for preview displays."""
        return [(folder.name, folder.count, folder.total_size) for folder in self.folders]


def build_manifest(buckets: Mapping[str, Sequence[PhotoFile]]) -> FolderManifest:
    """Build the manifest from folder buckets.

    ``buckets`` maps folder names to files, in the order the buckets were
    first populated. Empty buckets are dropped. Folders are sorted by count,
    descending; the sort is stable, so folders with equal counts keep the
    order of ``buckets``.
    """
    folders = [
        OrganizedFolder(name=name, files=tuple(files))
        for name, files in buckets.items()
        if files
    ]
    folders.sort(key=lambda folder: folder.count, reverse=True)
    return FolderManifest(folders=tuple(folders))
