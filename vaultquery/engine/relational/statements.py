"""
Typed statement tree for the supported SELECT shapes.

``ConstantSelect`` covers ``SELECT 1 AS test``; every other accepted
statement is a ``TableSelect``.  Select items are one of ``ColumnRef``,
``Aggregate`` or ``Literal``.
"""

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class ColumnRef:
    name: str
    alias: str | None = None

    @property
    def output_name(self) -> str:
        return self.alias or self.name


@dataclass(frozen=True)
class Aggregate:
    function: str  # COUNT or AVG
    argument: str  # "*" or a column name
    alias: str | None = None

    @property
    def output_name(self) -> str:
        return self.alias or f"{self.function}({self.argument})"


@dataclass(frozen=True)
class Literal:
    value: Any
    text: str
    alias: str | None = None

    @property
    def output_name(self) -> str:
        return self.alias or self.text


SelectItem = ColumnRef | Aggregate | Literal


@dataclass(frozen=True)
class Comparison:
    """``<column> <op> <literal>``"""

    column: str
    operator: str
    value: Any


@dataclass(frozen=True)
class OrderBy:
    column: str
    descending: bool = False


@dataclass(frozen=True)
class ConstantSelect:
    items: tuple[Literal, ...]


@dataclass(frozen=True)
class TableSelect:
    table: str
    items: tuple[SelectItem, ...] | None  # None means SELECT *
    where: Comparison | None = None
    group_by: str | None = None
    order_by: OrderBy | None = None
    limit: int | None = None
    ignored_where: str | None = None  # text of a skipped WHERE clause

    @property
    def aggregates(self) -> list[Aggregate]:
        return [item for item in self.items or () if isinstance(item, Aggregate)]


SelectStatement = ConstantSelect | TableSelect
