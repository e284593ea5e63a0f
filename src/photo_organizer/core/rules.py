"""Rule model for filename-based photo organization.

A rule pairs a case-insensitive filename pattern with a destination folder
and a priority. Rules are plain, immutable data; the only behaviour they
carry is :meth:`Rule.matches`. The active collection lives in a
:class:`RuleSet`, which replaces its contents wholesale on every edit so that
nothing derived from an older rule set can survive a mutation.
"""

import dataclasses
import json
import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, FrozenSet, Iterable, Iterator, List, Optional, Tuple, Union
from uuid import uuid4

from ..exceptions import (
    DuplicateRuleError,
    InvalidPatternError,
    RuleNotFoundError,
    RuleValidationError,
)
from ..models.photo_file import PhotoFile
from .rule_schema import validate_rule_json

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = frozenset({"name", "pattern", "folder", "priority", "description"})

# Id prefix of rules synthesized from face clusters
FACE_RULE_PREFIX = "face-"


def compile_pattern(pattern: Union[str, "re.Pattern[str]"]) -> "re.Pattern[str]":
    """Compile a filename pattern, always case-insensitive.

    Raises:
        InvalidPatternError: If the pattern is not a valid regular expression.
    """
    if isinstance(pattern, re.Pattern):
        return re.compile(pattern.pattern, pattern.flags | re.IGNORECASE)
    try:
        return re.compile(pattern, re.IGNORECASE)
    except re.error as e:
        raise InvalidPatternError(pattern, str(e)) from e


def _end_anchored(source: str) -> str:
    """Rewrite ``$`` as ``\\Z`` so it matches only at the very end of a name.

    Python's ``$`` also matches before a trailing newline. Escaped dollars and
    dollars inside character classes are left alone.
    """
    out = []
    i = 0
    while i < len(source):
        ch = source[i]
        if ch == "\\":
            out.append(source[i:i + 2])
            i += 2
            continue
        if ch == "[":
            end = i + 1
            if end < len(source) and source[end] == "^":
                end += 1
            if end < len(source) and source[end] == "]":
                end += 1  # Leading ']' is a literal
            while end < len(source) and source[end] != "]":
                end += 2 if source[end] == "\\" else 1
            out.append(source[i:end + 1])
            i = end + 1
            continue
        out.append(r"\Z" if ch == "$" else ch)
        i += 1
    return "".join(out)


@dataclass(frozen=True)
class Rule:
    """A single classification rule."""
    id: str
    name: str
    pattern: "re.Pattern[str]"
    folder: str
    priority: int = 0  # Higher priority rules are checked first
    description: str = ""
    photo_ids: Optional[FrozenSet[str]] = None  # Membership rules ignore the pattern
    _matcher: "re.Pattern[str]" = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        matcher = self.pattern
        if not self.pattern.flags & re.MULTILINE:
            matcher = re.compile(_end_anchored(self.pattern.pattern), self.pattern.flags)
        object.__setattr__(self, "_matcher", matcher)

    @property
    def pattern_source(self) -> str:
        return self.pattern.pattern

    def matches(self, photo: PhotoFile) -> bool:
        """Check if this rule matches the given file."""
        if self.photo_ids is not None:
            return photo.id in self.photo_ids
        return self._matcher.search(photo.name) is not None


def new_rule_id() -> str:
    return f"rule-{uuid4().hex}"


def create_rule(
    name: str,
    pattern: Union[str, "re.Pattern[str]"],
    folder: str,
    priority: int = 0,
    description: str = "",
    rule_id: Optional[str] = None,
) -> Rule:
    """Create a rule, compiling its pattern.

    Args:
        name: Human readable label
        pattern: Regular expression searched against the bare filename
        folder: Destination folder name
        priority: Higher values are evaluated first
        description: Informational text
        rule_id: Explicit id; a fresh one is generated when omitted

    Raises:
        InvalidPatternError: If the pattern cannot be compiled. No rule is
            created in that case.
    """
    return Rule(
        id=rule_id or new_rule_id(),
        name=name,
        pattern=compile_pattern(pattern),
        folder=folder,
        priority=int(priority),
        description=description,
    )


def create_membership_rule(
    name: str,
    photo_ids: Iterable[str],
    folder: str,
    priority: int = 0,
    description: str = "",
    rule_id: Optional[str] = None,
) -> Rule:
    """Create a rule that matches an explicit set of file ids."""
    return Rule(
        id=rule_id or new_rule_id(),
        name=name,
        pattern=compile_pattern(r"(?!)"),
        folder=folder,
        priority=int(priority),
        description=description,
        photo_ids=frozenset(photo_ids),
    )


DEFAULT_RULES: Tuple[Rule, ...] = (
    create_rule(
        rule_id="date-2015",
        name="2015 Photos",
        pattern=r"^2015\d{4}_\d{6}_.*\.(jpg|jpeg|png)$",
        folder="2015 Photos",
        priority=10,
        description="Photos with 2015 date prefix (YYYYMMDD_HHMMSS format)",
    ),
    create_rule(
        rule_id="date-2016",
        name="2016 Photos",
        pattern=r"^2016\d{4}_\d{6}_.*\.(jpg|jpeg|png)$",
        folder="2016 Photos",
        priority=10,
        description="Photos with 2016 date prefix (YYYYMMDD_HHMMSS format)",
    ),
    create_rule(
        rule_id="date-2017",
        name="2017 Photos",
        pattern=r"^2017\d{4}_\d{6}_.*\.(jpg|jpeg|png)$",
        folder="2017 Photos",
        priority=10,
        description="Photos with 2017 date prefix (YYYYMMDD_HHMMSS format)",
    ),
    create_rule(
        rule_id="date-2018-2025",
        name="Recent Photos (2018+)",
        pattern=r"^(201[8-9]|202[0-5])\d{4}_\d{6}_.*\.(jpg|jpeg|png)$",
        folder="Recent Photos",
        priority=10,
        description="Photos with 2018-2025 date prefix",
    ),
    create_rule(
        rule_id="img-camera",
        name="Camera Photos",
        pattern=r"^(img|image)_\d+.*\.(jpg|jpeg)$",
        folder="Camera Photos",
        priority=5,
        description="Camera-style IMG_#### numbered photos (JPG format)",
    ),
    create_rule(
        rule_id="screenshots",
        name="Screenshots",
        pattern=r".*\.(png|gif|bmp|webp)$",
        folder="Screenshots",
        priority=1,
        description="PNG, GIF, BMP, WebP files (likely screenshots/graphics)",
    ),
    create_rule(
        rule_id="raw-photos",
        name="RAW Photos",
        pattern=r".*\.(raw|cr2|nef|arw|dng|tiff|tif)$",
        folder="RAW Photos",
        priority=15,
        description="RAW camera files and professional formats",
    ),
    create_rule(
        rule_id="mobile-photos",
        name="Mobile Photos",
        pattern=r"^(photo|pic|snap|img).*\.(jpg|jpeg|heic|heif)$",
        folder="Mobile Photos",
        priority=3,
        description="Mobile phone style photo names",
    ),
)


def sort_rules(rules: Iterable[Rule]) -> List[Rule]:
    """Return rules in evaluation order.

    Highest priority first. The sort is stable, so rules sharing a priority
    keep their relative order from ``rules``.
    """
    return sorted(rules, key=lambda r: r.priority, reverse=True)


class RuleSet:
    """The active, ordered collection of rules."""

    def __init__(self, rules: Optional[Iterable[Rule]] = None):
        self._rules: Tuple[Rule, ...] = ()
        self.replace(DEFAULT_RULES if rules is None else rules)

    def __iter__(self) -> Iterator[Rule]:
        return iter(self._rules)

    def __len__(self) -> int:
        return len(self._rules)

    def __contains__(self, rule_id: object) -> bool:
        return any(rule.id == rule_id for rule in self._rules)

    def __repr__(self) -> str:
        return f"RuleSet({[rule.id for rule in self._rules]!r})"

    @property
    def rules(self) -> Tuple[Rule, ...]:
        return self._rules

    def get(self, rule_id: str) -> Rule:
        for rule in self._rules:
            if rule.id == rule_id:
                return rule
        raise RuleNotFoundError(f"No rule with id '{rule_id}'")

    def in_evaluation_order(self) -> List[Rule]:
        return sort_rules(self._rules)

    def replace(self, rules: Iterable[Rule]) -> None:
        """Replace the whole collection.

        Raises:
            DuplicateRuleError: If two rules share an id. The current
                collection is kept.
        """
        new_rules = tuple(rules)
        seen = set()
        for rule in new_rules:
            if rule.id in seen:
                raise DuplicateRuleError(f"Duplicate rule id '{rule.id}'")
            seen.add(rule.id)
        self._rules = new_rules

    def add(self, rule: Rule) -> Rule:
        """Append a rule to the collection."""
        if rule.id in self:
            raise DuplicateRuleError(f"Duplicate rule id '{rule.id}'")
        self.replace(self._rules + (rule,))
        logger.debug(f"Added rule {rule.id} -> {rule.folder}")
        return rule

    def create(
        self,
        name: str,
        pattern: str,
        folder: str,
        priority: int = 0,
        description: str = "",
    ) -> Rule:
        """Compile and append a new rule with a fresh id."""
        return self.add(create_rule(name, pattern, folder, priority, description))

    def update(self, rule_id: str, **changes: Any) -> Rule:
        """Edit a rule in place, keeping its position and id.

        ``pattern`` may be given as a string; it is compiled before anything
        changes, so an invalid pattern leaves the collection untouched.
        """
        unknown = set(changes) - EDITABLE_FIELDS
        if unknown:
            raise TypeError(f"Cannot edit rule fields: {', '.join(sorted(unknown))}")

        current = self.get(rule_id)
        if "pattern" in changes:
            changes["pattern"] = compile_pattern(changes["pattern"])
        if "priority" in changes:
            changes["priority"] = int(changes["priority"])

        updated = dataclasses.replace(current, **changes)
        self.replace(updated if rule.id == rule_id else rule for rule in self._rules)
        return updated

    def remove(self, rule_id: str) -> Rule:
        rule = self.get(rule_id)
        self.replace(r for r in self._rules if r.id != rule_id)
        return rule

    def reset(self) -> None:
        """Restore the built-in default rules."""
        self.replace(DEFAULT_RULES)


def rules_from_json(rules_data: Dict[str, Any], source: Optional[str] = None) -> List[Rule]:
    """Build rules from a parsed rules document.

    Raises:
        RuleValidationError: If the document does not satisfy the schema or
            contains an invalid pattern.
    """
    errors = validate_rule_json(rules_data)
    if errors:
        raise RuleValidationError(errors, source)

    rules: List[Rule] = list(DEFAULT_RULES) if rules_data.get("include_defaults") else []
    for i, rule_dict in enumerate(rules_data["rules"]):
        try:
            rules.append(create_rule(
                name=rule_dict["name"],
                pattern=rule_dict["pattern"],
                folder=rule_dict["folder"],
                priority=rule_dict.get("priority", 0),
                description=rule_dict.get("description", ""),
                rule_id=rule_dict.get("id"),
            ))
        except InvalidPatternError as e:
            raise RuleValidationError([f"Rule #{i + 1}: {e}"], source) from e

    ids = [rule.id for rule in rules]
    duplicates = sorted({rule_id for rule_id in ids if ids.count(rule_id) > 1})
    if duplicates:
        raise RuleValidationError([f"Duplicate rule id '{d}'" for d in duplicates], source)
    return rules


def load_rules(rules_file: Path) -> List[Rule]:
    """Load rules from a JSON file."""
    try:
        with open(rules_file, 'r', encoding='utf-8') as f:
            rules_data = json.load(f)
    except json.JSONDecodeError as e:
        raise RuleValidationError(
            [f"JSON parsing error: {e.msg} at line {e.lineno}, column {e.colno}"],
            str(rules_file),
        ) from e
    except OSError as e:
        raise RuleValidationError([f"Error reading file: {e}"], str(rules_file)) from e

    rules = rules_from_json(rules_data, str(rules_file))
    logger.info(f"Loaded {len(rules)} rules from {rules_file}")
    return rules
