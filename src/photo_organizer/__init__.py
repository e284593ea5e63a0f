"""Photo Organizer

Sorts photos into folders by matching filenames against prioritized rules
and packages the result as a zip archive.
"""

__version__ = "0.1.0"

from .core.classifier import Assignment, classify, organize_files
from .core.manifest import UNORGANIZED_FOLDER, FolderManifest, OrganizedFolder
from .core.rules import DEFAULT_RULES, Rule, RuleSet, create_rule
from .core.session import OrganizerSession
from .models.photo_file import PhotoFile

__all__ = [
    "Assignment",
    "DEFAULT_RULES",
    "FolderManifest",
    "OrganizedFolder",
    "OrganizerSession",
    "PhotoFile",
    "Rule",
    "RuleSet",
    "UNORGANIZED_FOLDER",
    "classify",
    "create_rule",
    "organize_files",
]
