"""
Recursive-descent parser for the supported SELECT subset.

Grammar::

    select   := SELECT items [FROM name [WHERE pred] [GROUP BY name]
                [ORDER BY name [ASC|DESC]] [LIMIT int]]
    items    := '*' | item (',' item)*
    item     := literal [AS name] | func '(' ('*' | name) ')' [AS name] | name [AS name]
    pred     := name op number | name '=' string

A WHERE clause that is not a single recognised predicate is skipped up
to the next clause keyword and treated as no filter; the skipped text
is kept on the statement so the result can carry a warning.
"""

import logging

from vaultquery.engine.lexer import IDENT, NUMBER, STRING, TokenStream, parse_number
from vaultquery.engine.relational.statements import (
    Aggregate,
    ColumnRef,
    Comparison,
    ConstantSelect,
    Literal,
    OrderBy,
    SelectItem,
    SelectStatement,
    TableSelect,
)
from vaultquery.shared.exceptions import AggregateError, QuerySyntaxError

logger = logging.getLogger("vaultquery.relational.parser")

AGGREGATE_FUNCTIONS = {"COUNT", "AVG"}
COMPARISON_OPERATORS = (">=", "<=", ">", "<", "=")
_CLAUSE_KEYWORDS = ("GROUP", "ORDER", "LIMIT")


def parse_select(text: str) -> SelectStatement:
    """Parse statement text into a typed SELECT statement."""
    return _SelectParser(text).parse()


class _SelectParser:
    def __init__(self, text: str):
        self._stream = TokenStream(text)

    def parse(self) -> SelectStatement:
        stream = self._stream
        stream.expect_keyword("SELECT")
        items = self._select_list()

        if not stream.accept_keyword("FROM"):
            if not stream.at_end():
                raise QuerySyntaxError(stream.peek().display)
            if items is not None and all(isinstance(item, Literal) for item in items):
                return ConstantSelect(items=tuple(items))
            first = "*" if items is None else next(
                item.output_name for item in items if not isinstance(item, Literal)
            )
            raise QuerySyntaxError(first, "FROM clause not found")

        table = stream.expect_identifier().text
        where = ignored_where = None
        if stream.accept_keyword("WHERE"):
            where, ignored_where = self._where()

        group_by = None
        if stream.accept_keyword("GROUP"):
            stream.expect_keyword("BY")
            group_by = stream.expect_identifier().text

        order_by = None
        if stream.accept_keyword("ORDER"):
            stream.expect_keyword("BY")
            column = stream.expect_identifier().text
            descending = False
            direction = stream.accept_keyword("ASC", "DESC")
            if direction is not None:
                descending = direction.upper == "DESC"
            order_by = OrderBy(column=column, descending=descending)

        limit = None
        if stream.accept_keyword("LIMIT"):
            token = stream.advance()
            if token.kind != NUMBER or "." in token.text:
                raise QuerySyntaxError(token.display, "LIMIT expects a non-negative integer")
            limit = int(token.text)

        if not stream.at_end():
            raise QuerySyntaxError(stream.peek().display)

        return TableSelect(
            table=table,
            items=None if items is None else tuple(items),
            where=where,
            group_by=group_by,
            order_by=order_by,
            limit=limit,
            ignored_where=ignored_where,
        )

    # ─── Select list ───────────────────────────────────────

    def _select_list(self) -> list[SelectItem] | None:
        if self._stream.accept_symbol("*"):
            return None
        items = [self._item()]
        while self._stream.accept_symbol(","):
            items.append(self._item())
        seen: set[str] = set()
        for item in items:
            if item.output_name in seen:
                raise QuerySyntaxError(item.output_name, "duplicate column name in select list")
            seen.add(item.output_name)
        return items

    def _item(self) -> SelectItem:
        stream = self._stream
        literal = self._literal()
        if literal is not None:
            value, text = literal
            return Literal(value=value, text=text, alias=self._alias())

        name = stream.expect_identifier()
        if stream.accept_symbol("("):
            function = name.upper
            if function not in AGGREGATE_FUNCTIONS:
                raise AggregateError(f"unsupported aggregate function {name.text}")
            if stream.accept_symbol("*"):
                argument = "*"
            elif stream.peek().kind == IDENT:
                argument = stream.advance().text
            else:
                raise AggregateError(
                    f"{function} expects '*' or a column, got '{stream.peek().display}'"
                )
            if function == "AVG" and argument == "*":
                raise AggregateError("AVG requires a column argument")
            stream.expect_symbol(")")
            return Aggregate(function=function, argument=argument, alias=self._alias())

        return ColumnRef(name=name.text, alias=self._alias())

    def _alias(self) -> str | None:
        if self._stream.accept_keyword("AS"):
            return self._stream.expect_identifier().text
        return None

    def _literal(self) -> tuple[object, str] | None:
        stream = self._stream
        token = stream.peek()
        if token.kind == NUMBER:
            stream.advance()
            return parse_number(token.text), token.text
        if token.is_symbol("-") and stream.peek(1).kind == NUMBER:
            stream.advance()
            number = stream.advance()
            return -parse_number(number.text), f"-{number.text}"
        if token.kind == STRING:
            stream.advance()
            return token.text, f"'{token.text}'"
        if token.is_keyword("TRUE", "FALSE"):
            stream.advance()
            return token.upper == "TRUE", token.upper
        if token.is_keyword("NULL"):
            stream.advance()
            return None, "NULL"
        return None

    # ─── WHERE ─────────────────────────────────────────────

    def _where(self) -> tuple[Comparison | None, str | None]:
        """Parse one comparison, or skip the clause and return its text."""
        stream = self._stream
        start = stream.mark
        predicate = self._comparison()
        if predicate is not None and (stream.at_end() or stream.at_keyword(*_CLAUSE_KEYWORDS)):
            return predicate, None

        stream.reset(start)
        skipped = self._skip_to_clause()
        logger.warning("Unrecognised WHERE clause ignored: %s", skipped)
        return None, skipped

    def _comparison(self) -> Comparison | None:
        stream = self._stream
        if stream.peek().kind != IDENT or stream.at_keyword(*_CLAUSE_KEYWORDS):
            return None
        column = stream.advance().text
        op = stream.accept_symbol(*COMPARISON_OPERATORS)
        if op is None:
            return None
        token = stream.peek()
        if token.kind == NUMBER:
            stream.advance()
            return Comparison(column=column, operator=op.text, value=parse_number(token.text))
        if token.is_symbol("-") and stream.peek(1).kind == NUMBER:
            stream.advance()
            number = stream.advance()
            return Comparison(column=column, operator=op.text, value=-parse_number(number.text))
        if token.kind == STRING and op.text == "=":
            stream.advance()
            return Comparison(column=column, operator="=", value=token.text)
        return None

    def _skip_to_clause(self) -> str:
        stream = self._stream
        depth = 0
        skipped = []
        while not stream.at_end():
            if depth == 0 and stream.at_keyword(*_CLAUSE_KEYWORDS):
                break
            token = stream.advance()
            if token.is_symbol("("):
                depth += 1
            elif token.is_symbol(")"):
                depth = max(0, depth - 1)
            skipped.append(token.text)
        return " ".join(skipped)
