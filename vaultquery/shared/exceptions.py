"""
Custom exception hierarchy for the query engine.

Every engine error inherits from EngineError so it can be caught
uniformly at the result normalizer boundary and turned into a
failure envelope.  ``kind`` is the taxonomy name shown to users.
"""


class EngineError(Exception):
    """Base exception for all query engine errors."""

    kind = "EngineError"

    def __init__(self, message: str):
        self.message = message
        super().__init__(f"{self.kind}: {message}")


class BackendUnavailable(EngineError):
    """No backend strategy produced a verified connection."""

    kind = "BackendUnavailable"


class InvalidQuery(EngineError):
    """Statement rejected by the gatekeeper before evaluation."""

    kind = "InvalidQuery"

    def __init__(self, reason: str, rule: str = "unknown"):
        self.reason = reason
        self.rule = rule
        super().__init__(f"{reason} (rule: {rule})")


class NoSuchTable(EngineError):
    """FROM names a table the dataset does not have."""

    kind = "NoSuchTable"

    def __init__(self, table: str):
        self.table = table
        super().__init__(f"no such table: {table}")


class NoSuchColumn(EngineError):
    """A statement references a column absent from the row."""

    kind = "NoSuchColumn"

    def __init__(self, column: str):
        self.column = column
        super().__init__(f"no such column: {column}")


class NoSuchLabel(EngineError):
    """A MATCH names a label absent from the dataset (strict mode only)."""

    kind = "NoSuchLabel"

    def __init__(self, label: str):
        self.label = label
        super().__init__(f"no such label: {label}")


class QuerySyntaxError(EngineError):
    """Statement could not be tokenized or parsed."""

    kind = "SyntaxError"

    def __init__(self, token: str, detail: str = ""):
        self.token = token
        message = f"syntax error near '{token}'"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class UnsupportedPattern(EngineError):
    """Graph statement does not match any supported pattern shape."""

    kind = "UnsupportedPattern"


class AggregateError(EngineError):
    """Malformed aggregate or GROUP BY clause."""

    kind = "AggregateError"


class ExecutionError(EngineError):
    """A backend driver failed in a way outside the taxonomy."""

    kind = "ExecutionError"


class InvalidDescriptor(EngineError):
    """Target descriptor does not match the dialect's expected shape."""

    kind = "InvalidDescriptor"


class DatasetError(EngineError):
    """Seed or loaded dataset is malformed."""

    kind = "DatasetError"
