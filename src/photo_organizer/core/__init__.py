"""Core organizer functionality."""

from .classifier import (
    Assignment,
    apply_assignments,
    classify,
    find_matching_rule,
    group_assignments,
    organize_files,
)
from .manifest import UNORGANIZED_FOLDER, FolderManifest, OrganizedFolder, build_manifest
from .rules import (
    DEFAULT_RULES,
    Rule,
    RuleSet,
    compile_pattern,
    create_membership_rule,
    create_rule,
    load_rules,
    sort_rules,
)
from .session import OrganizerSession, ProcessingStatus, ViewMode

__all__ = [
    "Assignment",
    "DEFAULT_RULES",
    "FolderManifest",
    "OrganizedFolder",
    "OrganizerSession",
    "ProcessingStatus",
    "Rule",
    "RuleSet",
    "UNORGANIZED_FOLDER",
    "ViewMode",
    "apply_assignments",
    "build_manifest",
    "classify",
    "compile_pattern",
    "create_membership_rule",
    "create_rule",
    "find_matching_rule",
    "group_assignments",
    "load_rules",
    "organize_files",
    "sort_rules",
]
