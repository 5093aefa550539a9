"""
Promotion template rule engine.

Rules are stored on ``PromotionTemplate.rules`` as JSON:

    [{"category": "technical", "level": "gold", "count": 2},
     {"category": "any",       "level": "silver", "count": 1}]

and parsed into a tagged variant:

    SpecificCategory(category, level)  — matches badges of that category AND level
    AnyCategory(level)                 — matches badges of that level, any category

Evaluation is pure: it takes parsed rules plus the (category, level) pairs
of the reserved badge applications and returns the requirement breakdown.
Badges are counted independently per rule; a gold/technical badge counts
towards both a technical/gold rule and an any/gold rule.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from typing import Iterable, Union

from badger.core.exceptions import ValidationError
from badger.models.catalog import BADGE_CATEGORIES, BADGE_LEVELS

ANY_CATEGORY = "any"
MAX_RULES = 50


@dataclass(frozen=True)
class SpecificCategory:
    category: str
    level: str


@dataclass(frozen=True)
class AnyCategory:
    level: str


RuleScope = Union[SpecificCategory, AnyCategory]


@dataclass(frozen=True)
class Rule:
    scope: RuleScope
    minimum_required: int

    @property
    def category_label(self) -> str:
        if isinstance(self.scope, AnyCategory):
            return ANY_CATEGORY
        return self.scope.category

    @property
    def level(self) -> str:
        return self.scope.level


@dataclass(frozen=True)
class Requirement:
    category: str
    level: str
    required: int
    current: int

    @property
    def satisfied(self) -> bool:
        return self.current >= self.required

    @property
    def deficit(self) -> int:
        return max(self.required - self.current, 0)

    def to_dict(self) -> dict:
        return {
            "category": self.category,
            "level": self.level,
            "required": self.required,
            "current": self.current,
            "satisfied": self.satisfied,
        }


@dataclass(frozen=True)
class Evaluation:
    requirements: list[Requirement]

    @property
    def is_valid(self) -> bool:
        return all(r.satisfied for r in self.requirements)

    @property
    def missing(self) -> list[dict]:
        return [
            {"category": r.category, "level": r.level, "count": r.deficit}
            for r in self.requirements
            if not r.satisfied
        ]


# ── Parsing ────────────────────────────────────────────────────────────────────


def parse_rule(raw: dict, index: int = 0) -> Rule:
    """Parse one ``{category, level, count}`` dict into a ``Rule``.

    Raises:
        ValidationError: unknown category/level or count that is not an int >= 1.
    """
    if not isinstance(raw, dict):
        raise ValidationError("Each rule must be an object", details={f"rules[{index}]": raw})

    category = raw.get("category")
    level = raw.get("level")
    count = raw.get("count")

    if level not in BADGE_LEVELS:
        raise ValidationError(
            f"Rule level must be one of: {', '.join(BADGE_LEVELS)}",
            details={f"rules[{index}].level": level},
        )
    # bool is an int subclass; reject it explicitly
    if isinstance(count, bool) or not isinstance(count, int) or count < 1:
        raise ValidationError(
            "Rule count must be an integer >= 1",
            details={f"rules[{index}].count": count},
        )

    if category == ANY_CATEGORY:
        return Rule(AnyCategory(level), count)
    if category in BADGE_CATEGORIES:
        return Rule(SpecificCategory(category, level), count)
    raise ValidationError(
        f"Rule category must be one of: {', '.join(BADGE_CATEGORIES + (ANY_CATEGORY,))}",
        details={f"rules[{index}].category": category},
    )


def parse_rules(raw_rules) -> list[Rule]:
    """Parse a template's JSON rule list. An empty list is rejected."""
    if not isinstance(raw_rules, list) or not raw_rules:
        raise ValidationError("rules must be a non-empty array", details={"rules": "required"})
    if len(raw_rules) > MAX_RULES:
        raise ValidationError(f"A template may define at most {MAX_RULES} rules")
    return [parse_rule(r, i) for i, r in enumerate(raw_rules)]


def serialize_rules(rules: Iterable[Rule]) -> list[dict]:
    return [
        {"category": r.category_label, "level": r.level, "count": r.minimum_required}
        for r in rules
    ]


# ── Evaluation ─────────────────────────────────────────────────────────────────


def evaluate_rules(rules: Iterable[Rule], badges: Iterable[tuple[str, str]]) -> Evaluation:
    """Evaluate *rules* against reserved badges given as ``(category, level)`` pairs."""
    by_pair: Counter = Counter()
    by_level: Counter = Counter()
    for category, level in badges:
        by_pair[(category, level)] += 1
        by_level[level] += 1

    requirements = []
    for rule in rules:
        scope = rule.scope
        if isinstance(scope, AnyCategory):
            current = by_level[scope.level]
        else:
            current = by_pair[(scope.category, scope.level)]
        requirements.append(
            Requirement(
                category=rule.category_label,
                level=rule.level,
                required=rule.minimum_required,
                current=current,
            )
        )
    return Evaluation(requirements)
