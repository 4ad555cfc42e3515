"""
Annotation selector.

Parses the annotation filter expression once, using the Kubernetes label
selector grammar, and matches it against annotation maps:

    key                 key is present
    !key                key is absent
    key=value           key is present and equal to value (also ``==``)
    key!=value          key is absent or not equal to value
    key in (a, b)       key is present and its value is one of the set
    key notin (a, b)    key is absent or its value is not in the set

Requirements are separated by commas and must all match. An empty
expression matches everything.
"""

import re
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, List

from waypoint_dns.errors import ConfigurationError

_KEY = re.compile(r"^([A-Za-z0-9][-A-Za-z0-9_.]*/)?[A-Za-z0-9]([-A-Za-z0-9_.]*[A-Za-z0-9])?$")
_SET_REQUIREMENT = re.compile(r"^(\S+)\s+(in|notin)\s*\((.*)\)$")

EXISTS = "exists"
DOES_NOT_EXIST = "!"
EQUALS = "="
NOT_EQUALS = "!="
IN = "in"
NOT_IN = "notin"


@dataclass(frozen=True)
class Requirement:
    key: str
    operator: str
    values: FrozenSet[str] = field(default_factory=frozenset)

    def matches(self, annotations: Dict[str, str]) -> bool:
        present = self.key in annotations
        if self.operator == EXISTS:
            return present
        if self.operator == DOES_NOT_EXIST:
            return not present
        if self.operator in (EQUALS, IN):
            return present and annotations[self.key] in self.values
        # NOT_EQUALS / NOT_IN
        return not present or annotations[self.key] not in self.values


class AnnotationSelector:
    """
    A parsed annotation filter expression.
    """

    def __init__(self, requirements: List[Requirement]):
        self.requirements = requirements

    @classmethod
    def parse(cls, expression: str) -> "AnnotationSelector":
        """
        Parse a selector expression.

        Args:
            expression: Selector expression, may be empty

        Returns:
            AnnotationSelector: Parsed selector

        Raises:
            ConfigurationError: If the expression is malformed
        """
        requirements = []
        for term in _split_terms(expression or ""):
            requirements.append(_parse_requirement(term, expression))
        return cls(requirements)

    def matches(self, annotations: Dict[str, str]) -> bool:
        return all(req.matches(annotations) for req in self.requirements)

    def empty(self) -> bool:
        return not self.requirements

    def __str__(self) -> str:
        parts = []
        for req in self.requirements:
            if req.operator == EXISTS:
                parts.append(req.key)
            elif req.operator == DOES_NOT_EXIST:
                parts.append(f"!{req.key}")
            elif req.operator in (EQUALS, NOT_EQUALS):
                parts.append(f"{req.key}{req.operator}{next(iter(req.values))}")
            else:
                parts.append(f"{req.key} {req.operator} ({','.join(sorted(req.values))})")
        return ",".join(parts)


def _split_terms(expression: str) -> List[str]:
    """Split on commas that are not inside a value set."""
    terms = []
    depth = 0
    current = []
    for char in expression:
        if char == "(":
            depth += 1
        elif char == ")":
            depth -= 1
            if depth < 0:
                raise ConfigurationError(
                    f"invalid annotation filter {expression!r}: unbalanced ')'"
                )
        if char == "," and depth == 0:
            terms.append("".join(current).strip())
            current = []
        else:
            current.append(char)
    if depth != 0:
        raise ConfigurationError(f"invalid annotation filter {expression!r}: unbalanced '('")

    last = "".join(current).strip()
    if terms or last:
        terms.append(last)
    for term in terms:
        if not term:
            raise ConfigurationError(
                f"invalid annotation filter {expression!r}: empty requirement"
            )
    return terms


def _parse_requirement(term: str, expression: str) -> Requirement:
    match = _SET_REQUIREMENT.match(term)
    if match:
        key, operator, raw_values = match.groups()
        values = frozenset(v.strip() for v in raw_values.split(",") if v.strip())
        if not values:
            raise ConfigurationError(
                f"invalid annotation filter {expression!r}: empty value set for {key!r}"
            )
        return Requirement(_check_key(key, expression), operator, values)

    for operator, token in ((NOT_EQUALS, "!="), (EQUALS, "=="), (EQUALS, "=")):
        if token in term:
            key, value = term.split(token, 1)
            value = value.strip()
            if "=" in value or "!" in value:
                raise ConfigurationError(
                    f"invalid annotation filter {expression!r}: bad value in {term!r}"
                )
            return Requirement(_check_key(key.strip(), expression), operator, frozenset([value]))

    if term.startswith("!"):
        return Requirement(_check_key(term[1:].strip(), expression), DOES_NOT_EXIST)
    return Requirement(_check_key(term, expression), EXISTS)


def _check_key(key: str, expression: str) -> str:
    if not _KEY.match(key):
        raise ConfigurationError(
            f"invalid annotation filter {expression!r}: invalid key {key!r}"
        )
    return key
