"""
Typed statement tree for the supported graph pattern shapes.
"""

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class NodePattern:
    variable: str | None
    label: str | None = None


@dataclass(frozen=True)
class RelationshipPattern:
    variable: str | None
    rel_type: str


@dataclass(frozen=True)
class PropertyFilter:
    """``<var>.<property> <op> <number>`` on a node-bound variable."""

    variable: str
    prop: str
    operator: str
    value: int | float


@dataclass(frozen=True)
class ReturnItem:
    variable: str
    prop: str | None = None
    alias: str | None = None

    @property
    def output_name(self) -> str:
        if self.alias:
            return self.alias
        if self.prop:
            return f"{self.variable}.{self.prop}"
        return self.variable


@dataclass(frozen=True)
class ReturnLiteral:
    value: Any
    text: str
    alias: str | None = None

    @property
    def output_name(self) -> str:
        return self.alias or self.text


@dataclass(frozen=True)
class NodeScan:
    node: NodePattern
    items: tuple[ReturnItem, ...]
    where: PropertyFilter | None = None
    limit: int | None = None


@dataclass(frozen=True)
class Traversal:
    start: NodePattern
    relationship: RelationshipPattern
    end: NodePattern
    items: tuple[ReturnItem, ...]
    where: PropertyFilter | None = None
    limit: int | None = None


@dataclass(frozen=True)
class CountAggregate:
    node: NodePattern
    where: PropertyFilter | None = None
    alias: str | None = None
    limit: int | None = None

    @property
    def output_name(self) -> str:
        return self.alias or f"COUNT({self.node.variable})"


@dataclass(frozen=True)
class ShowSchema:
    target: str  # "LABELS" or "RELATIONSHIP TYPES"


@dataclass(frozen=True)
class ConstantReturn:
    items: tuple[ReturnLiteral, ...]


GraphStatement = NodeScan | Traversal | CountAggregate | ShowSchema | ConstantReturn
