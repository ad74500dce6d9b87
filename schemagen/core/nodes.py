"""Compiled validator nodes.

A compiled schema is a tree of ``ValidatorNode`` objects. Every node answers
``validate(instance)`` with a plain boolean and never raises for a
well-formed JSON value. Keywords that do not apply to the instance's type
pass.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, Union

from .values import (
    compare_numbers,
    is_multiple_of,
    is_number,
    json_equal,
    json_type,
    unique,
)


class ValidatorNode:
    """Base class of every compiled node."""

    def validate(self, instance: Any) -> bool:
        raise NotImplementedError


def validate(node: ValidatorNode, instance: Any) -> bool:
    """Evaluate a compiled validator against an instance."""
    return node.validate(instance)


@dataclass(eq=False)
class AcceptAll(ValidatorNode):
    def validate(self, instance: Any) -> bool:
        return True


@dataclass(eq=False)
class RejectAll(ValidatorNode):
    def validate(self, instance: Any) -> bool:
        return False


ACCEPT_ALL = AcceptAll()


@dataclass
class Const(ValidatorNode):
    value: Any

    def validate(self, instance: Any) -> bool:
        return json_equal(self.value, instance)


@dataclass
class Enum(ValidatorNode):
    options: List[Const]

    def validate(self, instance: Any) -> bool:
        return any(option.validate(instance) for option in self.options)


@dataclass
class Type(ValidatorNode):
    """Passes when the instance has one of ``names``."""

    names: Tuple[str, ...]

    def validate(self, instance: Any) -> bool:
        actual = json_type(instance)
        if actual in self.names:
            return True
        return actual == "integer" and "number" in self.names


# Numeric bounds ------------------------------------------------------------


@dataclass
class Minimum(ValidatorNode):
    bound: Any

    def validate(self, instance: Any) -> bool:
        return not is_number(instance) or compare_numbers(instance, self.bound) >= 0


@dataclass
class Maximum(ValidatorNode):
    bound: Any

    def validate(self, instance: Any) -> bool:
        return not is_number(instance) or compare_numbers(instance, self.bound) <= 0


@dataclass
class ExclusiveMinimum(ValidatorNode):
    bound: Any

    def validate(self, instance: Any) -> bool:
        return not is_number(instance) or compare_numbers(instance, self.bound) > 0


@dataclass
class ExclusiveMaximum(ValidatorNode):
    bound: Any

    def validate(self, instance: Any) -> bool:
        return not is_number(instance) or compare_numbers(instance, self.bound) < 0


@dataclass
class MultipleOf(ValidatorNode):
    divisor: Any

    def validate(self, instance: Any) -> bool:
        return not is_number(instance) or is_multiple_of(instance, self.divisor)


# Strings -------------------------------------------------------------------


@dataclass
class MinLength(ValidatorNode):
    limit: int

    def validate(self, instance: Any) -> bool:
        return not isinstance(instance, str) or len(instance) >= self.limit


@dataclass
class MaxLength(ValidatorNode):
    limit: int

    def validate(self, instance: Any) -> bool:
        return not isinstance(instance, str) or len(instance) <= self.limit


@dataclass
class Pattern(ValidatorNode):
    regex: "re.Pattern[str]"

    def validate(self, instance: Any) -> bool:
        return not isinstance(instance, str) or self.regex.search(instance) is not None


@dataclass
class Format(ValidatorNode):
    name: str
    check: Callable[[str], bool]

    def validate(self, instance: Any) -> bool:
        return not isinstance(instance, str) or self.check(instance)


# Combinators ---------------------------------------------------------------


@dataclass
class AllOf(ValidatorNode):
    children: List[ValidatorNode]

    def validate(self, instance: Any) -> bool:
        return all(child.validate(instance) for child in self.children)


@dataclass
class AnyOf(ValidatorNode):
    children: List[ValidatorNode]

    def validate(self, instance: Any) -> bool:
        return any(child.validate(instance) for child in self.children)


@dataclass
class OneOf(ValidatorNode):
    children: List[ValidatorNode]

    def validate(self, instance: Any) -> bool:
        matched = 0
        for child in self.children:
            if child.validate(instance):
                matched += 1
                if matched > 1:
                    return False
        return matched == 1


@dataclass
class Not(ValidatorNode):
    child: ValidatorNode

    def validate(self, instance: Any) -> bool:
        return not self.child.validate(instance)


@dataclass
class IfThenElse(ValidatorNode):
    condition: ValidatorNode
    then: ValidatorNode = ACCEPT_ALL
    otherwise: ValidatorNode = ACCEPT_ALL

    def validate(self, instance: Any) -> bool:
        if self.condition.validate(instance):
            return self.then.validate(instance)
        return self.otherwise.validate(instance)


# Objects -------------------------------------------------------------------


@dataclass
class Properties(ValidatorNode):
    """``properties``, ``patternProperties`` and ``additionalProperties`` together.

    A member is "additional" when its name is neither declared in
    ``named`` nor matched by any pattern.
    """

    named: Dict[str, ValidatorNode] = field(default_factory=dict)
    patterns: List[Tuple["re.Pattern[str]", ValidatorNode]] = field(default_factory=list)
    additional: ValidatorNode = ACCEPT_ALL

    def validate(self, instance: Any) -> bool:
        if not isinstance(instance, dict):
            return True
        for name, value in instance.items():
            matched = False
            child = self.named.get(name)
            if child is not None:
                matched = True
                if not child.validate(value):
                    return False
            for regex, node in self.patterns:
                if regex.search(name) is not None:
                    matched = True
                    if not node.validate(value):
                        return False
            if not matched and not self.additional.validate(value):
                return False
        return True


@dataclass
class Required(ValidatorNode):
    names: Tuple[str, ...]

    def validate(self, instance: Any) -> bool:
        return not isinstance(instance, dict) or all(name in instance for name in self.names)


@dataclass
class PropertyNames(ValidatorNode):
    child: ValidatorNode

    def validate(self, instance: Any) -> bool:
        return not isinstance(instance, dict) or all(
            self.child.validate(name) for name in instance
        )


@dataclass
class Dependencies(ValidatorNode):
    """Per-property requirements: a tuple of names or a schema on the whole object."""

    entries: Dict[str, Union[Tuple[str, ...], ValidatorNode]]

    def validate(self, instance: Any) -> bool:
        if not isinstance(instance, dict):
            return True
        for trigger, dependency in self.entries.items():
            if trigger not in instance:
                continue
            if isinstance(dependency, ValidatorNode):
                if not dependency.validate(instance):
                    return False
            elif not all(name in instance for name in dependency):
                return False
        return True


@dataclass
class MinProperties(ValidatorNode):
    limit: int

    def validate(self, instance: Any) -> bool:
        return not isinstance(instance, dict) or len(instance) >= self.limit


@dataclass
class MaxProperties(ValidatorNode):
    limit: int

    def validate(self, instance: Any) -> bool:
        return not isinstance(instance, dict) or len(instance) <= self.limit


# Arrays --------------------------------------------------------------------


@dataclass
class Items(ValidatorNode):
    """``items`` as one schema for every element, or a tuple plus ``additionalItems``."""

    every: Optional[ValidatorNode] = None
    prefix: Sequence[ValidatorNode] = ()
    additional: ValidatorNode = ACCEPT_ALL

    def validate(self, instance: Any) -> bool:
        if not isinstance(instance, list):
            return True
        if self.every is not None:
            return all(self.every.validate(item) for item in instance)
        for index, item in enumerate(instance):
            if index < len(self.prefix):
                node = self.prefix[index]
            else:
                node = self.additional
            if not node.validate(item):
                return False
        return True


@dataclass
class MinItems(ValidatorNode):
    limit: int

    def validate(self, instance: Any) -> bool:
        return not isinstance(instance, list) or len(instance) >= self.limit


@dataclass
class MaxItems(ValidatorNode):
    limit: int

    def validate(self, instance: Any) -> bool:
        return not isinstance(instance, list) or len(instance) <= self.limit


@dataclass
class UniqueItems(ValidatorNode):
    def validate(self, instance: Any) -> bool:
        return not isinstance(instance, list) or unique(instance)


@dataclass
class Contains(ValidatorNode):
    child: ValidatorNode

    def validate(self, instance: Any) -> bool:
        return not isinstance(instance, list) or any(
            self.child.validate(item) for item in instance
        )


# References ----------------------------------------------------------------


class NodeArena:
    """Slots holding the compiled targets of ``$ref``.

    A slot is reserved (``None``) before its target compiles so a recursive
    schema can hand out a handle to it; the slot is filled once compilation
    of the target finishes.
    """

    def __init__(self) -> None:
        self._slots: List[Optional[ValidatorNode]] = []

    def reserve(self) -> int:
        self._slots.append(None)
        return len(self._slots) - 1

    def fill(self, slot: int, node: ValidatorNode) -> None:
        self._slots[slot] = node

    def get(self, slot: int) -> Optional[ValidatorNode]:
        return self._slots[slot]

    def __len__(self) -> int:
        return len(self._slots)


@dataclass(eq=False)
class Ref(ValidatorNode):
    arena: NodeArena = field(repr=False)
    slot: int
    target: str = ""

    def validate(self, instance: Any) -> bool:
        node = self.arena.get(self.slot)
        if node is None:
            raise RuntimeError(f"reference {self.target or self.slot} was never compiled")
        return node.validate(instance)
