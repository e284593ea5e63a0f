"""In-memory organizer session.

The session owns the accepted files and the active rule set, reclassifies
whenever either changes, and hands the packager an immutable manifest.
Reclassification and packaging are serialized by one lock, so a package run
never observes a manifest that is being rebuilt.
"""

import logging
import threading
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Iterable, List, Optional, Tuple

from ..exceptions import PackagingError, PhotoOrganizerError
from ..models.photo_file import PhotoFile
from .classifier import apply_assignments, classify, group_assignments
from .manifest import FolderManifest, build_manifest
from .packager import ProgressCallback, ZipArchivePackager
from .rules import FACE_RULE_PREFIX, Rule, RuleSet

logger = logging.getLogger(__name__)


class ViewMode(Enum):
    """Stages of the organize workflow."""
    UPLOAD = "upload"
    PREVIEW = "preview"
    PROCESSING = "processing"
    COMPLETE = "complete"


@dataclass
class ProcessingStatus:
    """Progress of the current packaging run."""
    is_processing: bool = False
    progress: float = 0.0  # Percent, 0-100
    completed_files: int = 0
    total_files: int = 0
    current_file: Optional[str] = None
    errors: List[str] = field(default_factory=list)


class OrganizerSession:
    """Single-user session state."""

    def __init__(self, rules: Optional[Iterable[Rule]] = None,
                 packager: Optional[ZipArchivePackager] = None):
        self._rule_set = RuleSet(rules)
        self.packager = packager or ZipArchivePackager()
        self.files: List[PhotoFile] = []
        self.manifest = FolderManifest()
        self.status = ProcessingStatus()
        self.view_mode = ViewMode.UPLOAD
        self._lock = threading.Lock()

    def add_files(self, photos: Iterable[PhotoFile]) -> None:
        new_files = list(photos)
        known = {photo.id for photo in self.files}
        for photo in new_files:
            if photo.id in known:
                raise PhotoOrganizerError(f"Duplicate file id '{photo.id}'")
            known.add(photo.id)
        self.files.extend(new_files)
        self.view_mode = ViewMode.PREVIEW
        self._auto_organize()

    def remove_file(self, file_id: str) -> None:
        self.files = [photo for photo in self.files if photo.id != file_id]
        self._auto_organize()

    @property
    def rules(self) -> Tuple[Rule, ...]:
        """The active rules, in definition order."""
        return self._rule_set.rules

    def add_rule(self, rule: Rule) -> Rule:
        self._rule_set.add(rule)
        self._auto_organize()
        return rule

    def create_rule(self, name: str, pattern: str, folder: str, priority: int = 0,
                    description: str = "") -> Rule:
        rule = self._rule_set.create(name, pattern, folder, priority, description)
        self._auto_organize()
        return rule

    def update_rule(self, rule_id: str, **changes: Any) -> Rule:
        rule = self._rule_set.update(rule_id, **changes)
        self._auto_organize()
        return rule

    def remove_rule(self, rule_id: str) -> Rule:
        rule = self._rule_set.remove(rule_id)
        self._auto_organize()
        return rule

    def set_rules(self, rules: Iterable[Rule]) -> None:
        self._rule_set.replace(rules)
        self._auto_organize()

    def reset_rules(self) -> None:
        self._rule_set.reset()
        self._auto_organize()

    def set_face_rules(self, face_rules: Iterable[Rule]) -> None:
        """Replace the rules derived from face clusters, keeping all others."""
        kept = [rule for rule in self._rule_set if not rule.id.startswith(FACE_RULE_PREFIX)]
        self.set_rules(kept + list(face_rules))

    def reset(self) -> None:
        """Drop all files and results. The rule set is kept."""
        with self._lock:
            self.files = []
            self.manifest = FolderManifest()
            self.status = ProcessingStatus()
            self.view_mode = ViewMode.UPLOAD

    def _auto_organize(self) -> None:
        if self.files:
            self.organize()
        else:
            with self._lock:
                self.manifest = FolderManifest()

    def organize(self) -> FolderManifest:
        """Reclassify every file against the current rules."""
        with self._lock:
            assignments = classify(self.files, self._rule_set)
            apply_assignments(self.files, assignments)
            self.manifest = build_manifest(group_assignments(self.files, assignments))
            return self.manifest

    def package(self, destination: Path, progress: Optional[ProgressCallback] = None) -> Optional[Path]:
        """Write the current manifest to an archive.

        Returns the archive path, or None when packaging failed; the failure
        is recorded in ``status.errors`` and the manifest is kept for a retry.
        """
        with self._lock:
            manifest = self.manifest
            if not len(manifest):
                return None

            self.view_mode = ViewMode.PROCESSING
            self.status = ProcessingStatus(is_processing=True, total_files=manifest.total_files)

            def track(completed: int, total: int, current: str) -> None:
                self.status.completed_files = completed
                self.status.current_file = current
                self.status.progress = completed / total * 100 if total else 100.0
                if progress:
                    progress(completed, total, current)

            try:
                archive = self.packager.package(manifest, destination, track)
            except PackagingError as e:
                logger.error(str(e))
                self.status.is_processing = False
                self.status.errors.append(str(e))
                self.view_mode = ViewMode.PREVIEW
                return None

            self.status.is_processing = False
            self.status.progress = 100.0
            self.view_mode = ViewMode.COMPLETE
            return archive
