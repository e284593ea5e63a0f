"""Rule-based classification of photo files into folders.

Each file is tested against the rules in evaluation order (priority
descending, ties in rule-set order) and lands in the folder of the first
rule that matches. Files no rule matches go to ``Unorganized``.

:func:`classify` is pure: it returns assignments and leaves the input files
alone. Callers that want ``PhotoFile.organization_folder`` filled in call
:func:`apply_assignments` explicitly.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Sequence

from ..models.photo_file import PhotoFile
from .manifest import UNORGANIZED_FOLDER, FolderManifest, build_manifest
from .rules import Rule, sort_rules

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Assignment:
    """The outcome of classifying one file."""
    file_id: str
    folder: Optional[str]  # None when no rule matched
    rule_id: Optional[str] = None

    @property
    def is_matched(self) -> bool:
        return self.folder is not None


def find_matching_rule(photo: PhotoFile, ordered_rules: Iterable[Rule]) -> Optional[Rule]:
    """Find the first rule that matches the given file.

    Args:
        photo: The file to check
        ordered_rules: Rules already in evaluation order

    Returns:
        The matching rule or None if no rule matches
    """
    for rule in ordered_rules:
        if rule.matches(photo):
            return rule
    return None


def classify(files: Sequence[PhotoFile], rules: Iterable[Rule]) -> List[Assignment]:
    """Assign each file to at most one folder.

    Returns one assignment per file, in input order.
    """
    ordered_rules = sort_rules(rules)
    assignments = []
    for photo in files:
        rule = find_matching_rule(photo, ordered_rules)
        if rule is None:
            assignments.append(Assignment(file_id=photo.id, folder=None))
        else:
            assignments.append(Assignment(file_id=photo.id, folder=rule.folder, rule_id=rule.id))

    matched = sum(1 for a in assignments if a.is_matched)
    logger.debug(
        f"Classified {len(assignments)} files against {len(ordered_rules)} rules "
        f"({matched} matched, {len(assignments) - matched} unorganized)"
    )
    return assignments


def group_assignments(
    files: Sequence[PhotoFile], assignments: Sequence[Assignment]
) -> Dict[str, List[PhotoFile]]:
    """Bucket files by assigned folder.

    Buckets appear in the order they are first populated; the
    ``Unorganized`` bucket, when present, comes last. Files keep their input
    order within a bucket.
    """
    by_id = {assignment.file_id: assignment for assignment in assignments}
    buckets: Dict[str, List[PhotoFile]] = {}
    unorganized: List[PhotoFile] = []

    for photo in files:
        assignment = by_id.get(photo.id)
        if assignment is None or assignment.folder is None:
            unorganized.append(photo)
        else:
            buckets.setdefault(assignment.folder, []).append(photo)

    if unorganized:
        # A rule may target the sentinel folder name itself
        buckets.setdefault(UNORGANIZED_FOLDER, []).extend(unorganized)
    return buckets


def apply_assignments(files: Iterable[PhotoFile], assignments: Sequence[Assignment]) -> None:
    """Record each file's folder on ``organization_folder``.

    Overwrites the value from any earlier run. Files without a matching
    rule are reset to ``None``.
    """
    by_id = {assignment.file_id: assignment.folder for assignment in assignments}
    for photo in files:
        photo.organization_folder = by_id.get(photo.id)


def organize_files(files: Sequence[PhotoFile], rules: Iterable[Rule]) -> FolderManifest:
    """Classify ``files`` and return the folder manifest."""
    assignments = classify(files, rules)
    return build_manifest(group_assignments(files, assignments))
