"""
Statement Gatekeeper — accept or reject raw statement text.

Runs before any evaluation, with the same contract for both dialects.
A rejection raises InvalidQuery whose ``rule`` names the check that
failed.  String literal contents are masked before keyword checks so a
quoted value such as ``'reset password'`` cannot trip them.
"""

import re

from vaultquery.shared.exceptions import InvalidQuery
from vaultquery.shared.models import Dialect

RELATIONAL_STARTERS = ("SELECT",)
GRAPH_STARTERS = ("MATCH", "RETURN", "WITH", "UNWIND", "CALL", "SHOW")

GRAPH_WRITE_KEYWORDS = ("CREATE", "MERGE", "DELETE", "SET", "REMOVE", "DETACH")
RELATIONAL_WRITE_KEYWORDS = (
    "INSERT", "UPDATE", "DELETE", "DROP", "CREATE", "ALTER", "TRUNCATE",
    "ATTACH", "DETACH", "MERGE", "GRANT", "REVOKE", "VACUUM", "REINDEX", "PRAGMA",
)

_SEPARATOR_WRITE = re.compile(
    r";\s*(DROP|DELETE|INSERT|UPDATE|CREATE|ALTER|REPLACE|TRUNCATE|ATTACH|DETACH"
    r"|MERGE|SET|REMOVE|GRANT|REVOKE)\b",
    re.IGNORECASE,
)
_COMMENT_MARKERS = re.compile(r"--|/\*|\*/")
_ADMIN_CALLS = re.compile(
    r"\bxp_|\bsp_|\bCALL\s+dbms\.|\bCALL\s+db\.|\bLOAD\s+CSV\b|\bUSING\s+PERIODIC\s+COMMIT\b",
    re.IGNORECASE,
)
_STRING_LITERAL = re.compile(r"'(?:[^']|'')*'|\"(?:[^\"\\]|\\.)*\"")
_LEADING_TOKEN = re.compile(r"\s*([A-Za-z_]+)")

_FENCE_OPEN = re.compile(r"^\s*```[ \t]*(sqlite|sql|cypher|neo4j)?[ \t]*\n?", re.IGNORECASE)
_FENCE_CLOSE = re.compile(r"\s*```\s*$")


def _keyword_pattern(words: tuple[str, ...]) -> re.Pattern:
    return re.compile(r"\b(" + "|".join(words) + r")\b", re.IGNORECASE)


_GRAPH_WRITE = _keyword_pattern(GRAPH_WRITE_KEYWORDS)
_RELATIONAL_WRITE = _keyword_pattern(RELATIONAL_WRITE_KEYWORDS)


def clean_statement(raw: str) -> str:
    """Strip markdown code fences, whitespace and one trailing ';'."""
    if raw is None or not raw.strip():
        raise InvalidQuery("empty statement", rule="empty-statement")
    cleaned = _FENCE_OPEN.sub("", raw.strip(), count=1)
    cleaned = _FENCE_CLOSE.sub("", cleaned).strip()
    if cleaned.endswith(";"):
        cleaned = cleaned[:-1].strip()
    if not cleaned:
        raise InvalidQuery("no statement left after cleaning", rule="empty-statement")
    return cleaned


def mask_literals(text: str) -> str:
    """Replace the contents of quoted literals with blanks of the same length."""
    return _STRING_LITERAL.sub(lambda m: m.group(0)[0] + " " * (len(m.group(0)) - 2) + m.group(0)[-1], text)


def check(dialect: Dialect | str, text: str) -> None:
    """Accept the statement or raise InvalidQuery naming the failed rule."""
    dialect = Dialect.from_name(dialect)
    if text is None or not text.strip():
        raise InvalidQuery("empty statement", rule="empty-statement")

    match = _LEADING_TOKEN.match(text)
    leading = match.group(1).upper() if match else ""
    starters = RELATIONAL_STARTERS if dialect is Dialect.RELATIONAL else GRAPH_STARTERS
    if leading not in starters:
        raise InvalidQuery(
            f"statement must start with one of {', '.join(starters)}",
            rule="leading-keyword",
        )

    scanned = mask_literals(text)

    found = _SEPARATOR_WRITE.search(scanned)
    if found:
        raise InvalidQuery(
            f"statement separator followed by {found.group(1).upper()}",
            rule="statement-separator",
        )
    if _COMMENT_MARKERS.search(scanned):
        raise InvalidQuery("comment markers are not allowed", rule="comment-marker")

    found = _ADMIN_CALLS.search(scanned)
    if found:
        raise InvalidQuery(
            f"administrative call '{found.group(0).strip()}' is not allowed",
            rule="admin-call",
        )

    write_pattern = _RELATIONAL_WRITE if dialect is Dialect.RELATIONAL else _GRAPH_WRITE
    found = write_pattern.search(scanned)
    if found:
        raise InvalidQuery(
            f"write keyword {found.group(1).upper()} is not allowed; queries are read-only",
            rule="write-keyword",
        )
