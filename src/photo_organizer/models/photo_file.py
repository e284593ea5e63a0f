"""Photo file model representing a file accepted for organization."""

from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Optional


@dataclass(slots=True)
class PhotoFile:
    """A single input file.

    Only ``name`` takes part in classification; ``size`` is used for
    reporting. ``organization_folder`` is written by
    :func:`photo_organizer.core.classifier.apply_assignments` and is ``None``
    until then.
    """

    id: str
    name: str
    size: int = 0
    content_type: str = ""
    last_modified: Optional[datetime] = None
    path: Optional[Path] = None
    organization_folder: Optional[str] = None

    @property
    def extension(self) -> str:
        """Get the lowercase file extension, without the dot."""
        return Path(self.name).suffix.lower().lstrip('.')

    @property
    def is_organized(self) -> bool:
        return self.organization_folder is not None
