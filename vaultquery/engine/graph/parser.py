"""
Parser for the supported graph statement shapes.

Grammar::

    statement := SHOW LABELS
               | SHOW RELATIONSHIP TYPES
               | RETURN literal [AS name] (',' literal [AS name])*
               | MATCH node ['-' '[' [var] ':' TYPE ']' '->' node]
                 [WHERE filter] RETURN returns [LIMIT int]
    node      := '(' [var] [':' Label] ')'
    filter    := [var '.'] prop op number
    returns   := COUNT '(' var ')' [AS name] | item (',' item)*
                 (output names must be distinct)
    item      := var ['.' prop] [AS name]

Anything outside these shapes raises UnsupportedPattern.  There is no
fallback result for unrecognised statements.
"""

from dataclasses import replace

from vaultquery.engine.graph.statements import (
    ConstantReturn,
    CountAggregate,
    GraphStatement,
    NodePattern,
    NodeScan,
    PropertyFilter,
    RelationshipPattern,
    ReturnItem,
    ReturnLiteral,
    ShowSchema,
    Traversal,
)
from vaultquery.engine.lexer import IDENT, NUMBER, STRING, TokenStream, parse_number
from vaultquery.shared.exceptions import QuerySyntaxError, UnsupportedPattern

COMPARISON_OPERATORS = (">=", "<=", ">", "<", "=")


def parse_graph(text: str) -> GraphStatement:
    """Parse statement text into exactly one supported graph shape."""
    return _GraphParser(text).parse()


class _GraphParser:
    def __init__(self, text: str):
        self._stream = TokenStream(text)

    def _unsupported(self, detail: str) -> UnsupportedPattern:
        token = self._stream.peek().display
        return UnsupportedPattern(f"unsupported pattern near '{token}': {detail}")

    def parse(self) -> GraphStatement:
        stream = self._stream
        if stream.accept_keyword("SHOW"):
            statement = self._show()
        elif stream.accept_keyword("RETURN"):
            statement = self._constant_return()
        elif stream.accept_keyword("MATCH"):
            statement = self._match()
        else:
            raise self._unsupported("expected MATCH, RETURN or SHOW")

        if not stream.at_end():
            raise self._unsupported("unexpected trailing clause")
        return statement

    # ─── SHOW / RETURN ─────────────────────────────────────

    def _show(self) -> ShowSchema:
        stream = self._stream
        if stream.accept_keyword("LABELS"):
            return ShowSchema(target="LABELS")
        if stream.accept_keyword("RELATIONSHIP"):
            if stream.accept_keyword("TYPES"):
                return ShowSchema(target="RELATIONSHIP TYPES")
        raise self._unsupported("only SHOW LABELS and SHOW RELATIONSHIP TYPES are supported")

    def _constant_return(self) -> ConstantReturn:
        items = [self._return_literal()]
        while self._stream.accept_symbol(","):
            items.append(self._return_literal())
        _check_distinct(items)
        return ConstantReturn(items=tuple(items))

    def _return_literal(self) -> ReturnLiteral:
        stream = self._stream
        token = stream.peek()
        if token.kind == NUMBER:
            stream.advance()
            value, text = parse_number(token.text), token.text
        elif token.is_symbol("-") and stream.peek(1).kind == NUMBER:
            stream.advance()
            number = stream.advance()
            value, text = -parse_number(number.text), f"-{number.text}"
        elif token.kind == STRING:
            stream.advance()
            value, text = token.text, f"'{token.text}'"
        elif token.is_keyword("TRUE", "FALSE"):
            stream.advance()
            value, text = token.upper == "TRUE", token.text.lower()
        elif token.is_keyword("NULL"):
            stream.advance()
            value, text = None, "null"
        else:
            raise self._unsupported("RETURN without MATCH only supports literals")
        return ReturnLiteral(value=value, text=text, alias=self._alias())

    # ─── MATCH ─────────────────────────────────────────────

    def _match(self) -> GraphStatement:
        stream = self._stream
        start = self._node()
        relationship = end = None
        if stream.accept_symbol("-"):
            relationship = self._relationship()
            stream.expect_symbol("->", error=UnsupportedPattern)
            end = self._node()

        bound_nodes = [n.variable for n in (start, end) if n is not None and n.variable]
        bound_rel = relationship.variable if relationship is not None else None
        if len(set(bound_nodes)) != len(bound_nodes) or (bound_rel and bound_rel in bound_nodes):
            raise self._unsupported("pattern variables must be distinct")

        where = None
        if stream.accept_keyword("WHERE"):
            where = self._filter(bound_nodes, bound_rel)

        stream.expect_keyword("RETURN", error=UnsupportedPattern)

        if stream.at_keyword("COUNT") and stream.peek(1).is_symbol("("):
            if relationship is not None:
                raise self._unsupported("COUNT is only supported over a single node pattern")
            statement = self._count(start, where)
            return replace(statement, limit=self._limit())

        items = [self._return_item(bound_nodes, bound_rel)]
        while stream.accept_symbol(","):
            items.append(self._return_item(bound_nodes, bound_rel))
        _check_distinct(items)
        limit = self._limit()

        if relationship is None:
            return NodeScan(node=start, items=tuple(items), where=where, limit=limit)
        return Traversal(
            start=start,
            relationship=relationship,
            end=end,
            items=tuple(items),
            where=where,
            limit=limit,
        )

    def _node(self) -> NodePattern:
        stream = self._stream
        stream.expect_symbol("(", error=UnsupportedPattern)
        variable = label = None
        if stream.peek().kind == IDENT:
            variable = stream.advance().text
        if stream.accept_symbol(":"):
            label = stream.expect_identifier(error=UnsupportedPattern).text
            if stream.at_symbol(":"):
                raise self._unsupported("only one label per node pattern is supported")
        if stream.at_symbol("{"):
            raise self._unsupported("inline property maps are not supported")
        stream.expect_symbol(")", error=UnsupportedPattern)
        return NodePattern(variable=variable, label=label)

    def _relationship(self) -> RelationshipPattern:
        stream = self._stream
        stream.expect_symbol("[", error=UnsupportedPattern)
        variable = None
        if stream.peek().kind == IDENT:
            variable = stream.advance().text
        if not stream.accept_symbol(":"):
            raise self._unsupported("relationship pattern needs a type")
        rel_type = stream.expect_identifier(error=UnsupportedPattern).text
        if stream.at_symbol("|", "*"):
            raise self._unsupported("alternative types and variable length are not supported")
        stream.expect_symbol("]", error=UnsupportedPattern)
        return RelationshipPattern(variable=variable, rel_type=rel_type)

    def _filter(self, bound_nodes: list[str], bound_rel: str | None) -> PropertyFilter:
        stream = self._stream
        first = stream.expect_identifier(error=UnsupportedPattern)
        if stream.accept_symbol("."):
            variable = first.text
            prop = stream.expect_identifier(error=UnsupportedPattern).text
            if variable == bound_rel:
                raise self._unsupported("WHERE filters apply to node variables only")
            if variable not in bound_nodes:
                raise QuerySyntaxError(variable, "variable not bound in MATCH")
        else:
            if len(bound_nodes) != 1:
                raise self._unsupported("bare property filter needs exactly one node variable")
            variable, prop = bound_nodes[0], first.text

        op = stream.accept_symbol(*COMPARISON_OPERATORS)
        if op is None:
            raise self._unsupported("expected a comparison operator")
        negative = stream.accept_symbol("-") is not None
        token = stream.peek()
        if token.kind != NUMBER:
            raise self._unsupported("WHERE filters compare against a number")
        stream.advance()
        value = parse_number(token.text)
        return PropertyFilter(
            variable=variable,
            prop=prop,
            operator=op.text,
            value=-value if negative else value,
        )

    def _count(self, node: NodePattern, where: PropertyFilter | None) -> CountAggregate:
        stream = self._stream
        stream.advance()  # COUNT
        stream.expect_symbol("(")
        variable = stream.expect_identifier(error=UnsupportedPattern).text
        stream.expect_symbol(")")
        if variable != node.variable:
            raise QuerySyntaxError(variable, "variable not bound in MATCH")
        alias = self._alias()
        if stream.at_symbol(","):
            raise self._unsupported("COUNT cannot be combined with other return items")
        return CountAggregate(node=node, where=where, alias=alias)

    def _return_item(self, bound_nodes: list[str], bound_rel: str | None) -> ReturnItem:
        stream = self._stream
        token = stream.peek()
        if token.kind != IDENT:
            raise self._unsupported("expected a variable in RETURN")
        if stream.peek(1).is_symbol("("):
            raise self._unsupported(f"function {token.text} is not supported in RETURN")
        variable = stream.advance().text
        if variable not in bound_nodes and variable != bound_rel:
            raise QuerySyntaxError(variable, "variable not bound in MATCH")
        prop = None
        if stream.accept_symbol("."):
            prop = stream.expect_identifier(error=UnsupportedPattern).text
        return ReturnItem(variable=variable, prop=prop, alias=self._alias())

    def _alias(self) -> str | None:
        if self._stream.accept_keyword("AS"):
            return self._stream.expect_identifier(error=UnsupportedPattern).text
        return None

    def _limit(self) -> int | None:
        stream = self._stream
        if not stream.accept_keyword("LIMIT"):
            return None
        token = stream.advance()
        if token.kind != NUMBER or "." in token.text:
            raise QuerySyntaxError(token.display, "LIMIT expects a non-negative integer")
        return int(token.text)


def _check_distinct(items: list[ReturnItem] | list[ReturnLiteral]) -> None:
    seen: set[str] = set()
    for item in items:
        if item.output_name in seen:
            raise QuerySyntaxError(item.output_name, "duplicate column name in RETURN")
        seen.add(item.output_name)
