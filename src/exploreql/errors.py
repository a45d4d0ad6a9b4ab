"""Exceptions raised while building explores and compiling metric queries.

none of these are transient - they all mean the request or the model is
malformed, so callers should surface them rather than retry.
"""


class ExploreQLError(Exception):
    """Base class for all ExploreQL errors."""


class CompileError(ExploreQLError):
    """A metric query could not be compiled into SQL."""


class UnknownFieldError(CompileError):
    """A referenced field does not exist in the explore."""

    def __init__(self, field_id: str, explore: str | None = None, reason: str | None = None):
        self.field_id = field_id
        self.explore = explore
        message = f"Unknown field '{field_id}'"
        if explore:
            message += f" in explore '{explore}'"
        if reason:
            message += f": {reason}"
        super().__init__(message)


class MissingJoinError(CompileError):
    """A field's table is neither the base table nor a declared join."""

    def __init__(self, field_id: str, table: str):
        self.field_id = field_id
        self.table = table
        super().__init__(
            f"Field '{field_id}' belongs to table '{table}' which is not the base "
            f"table or a joined table of the explore"
        )


class DuplicateFieldIdError(ExploreQLError):
    """Two fields in an explore produce the same field id."""

    def __init__(self, field_id: str, table: str, name: str):
        self.field_id = field_id
        self.table = table
        self.name = name
        super().__init__(
            f"Duplicate field id '{field_id}' (table '{table}', field '{name}')"
        )


class EmptyQueryError(CompileError):
    """Neither dimensions nor measures were selected."""

    def __init__(self) -> None:
        super().__init__("Query must select at least one dimension or measure")


class InvalidSortError(CompileError):
    """A sort references a field that isn't selected."""

    def __init__(self, field_id: str):
        self.field_id = field_id
        super().__init__(
            f"Cannot sort by '{field_id}': field is not a selected dimension or measure"
        )


class InvalidLimitError(CompileError):
    """The row limit is missing or not positive."""

    def __init__(self, limit: object):
        self.limit = limit
        super().__init__(f"Limit must be a positive integer, got {limit!r}")


class UnsupportedFieldTypeError(CompileError):
    """A type tag falls outside the closed set the compiler knows about."""

    def __init__(self, type_tag: object, kind: str = "field type"):
        self.type_tag = type_tag
        self.kind = kind
        super().__init__(f"Unsupported {kind}: {type_tag!r}")


class InvalidFilterValueError(CompileError):
    """A filter value can't be rendered as a SQL literal."""

    def __init__(self, value: object, detail: str):
        self.value = value
        super().__init__(f"Invalid filter value {value!r}: {detail}")


class TemplateError(CompileError):
    """A SQL template references a placeholder that can't be substituted."""

    def __init__(self, template: str, detail: str):
        self.template = template
        super().__init__(f"Cannot render SQL template '{template}': {detail}")
