"""Declarative query builder for the backend REST surface.

A ``Query`` collects a table name, a select projection and PostgREST filter
operators, and renders them as request parameters. It performs no I/O: the
``BackendClient`` executes it.

Example:
    ```python
    query = (
        Query("client", CLIENT_SELECT)
        .ilike_any(["person.name", "person.lastname"], "ana")
        .order("created_at", ascending=False)
        .range(0, 9)
    )
    result = await client.select(query, count=True)
    ```
"""

from datetime import date, time
from typing import Any


def _format_value(value: Any) -> str:
    """Render a Python value as a PostgREST literal."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return str(value).lower()
    if isinstance(value, (date, time)):
        return value.isoformat()
    return str(value)


class Query:
    """Filter/order/range description of a table read or mutation target."""

    def __init__(self, table: str, columns: str = "*"):
        self.table = table
        self.columns = columns
        self._filters: list[tuple[str, str]] = []
        self._order: list[str] = []
        self._offset: int | None = None
        self._limit: int | None = None

    def eq(self, column: str, value: Any) -> "Query":
        if value is None:
            self._filters.append((column, "is.null"))
        else:
            self._filters.append((column, f"eq.{_format_value(value)}"))
        return self

    def neq(self, column: str, value: Any) -> "Query":
        self._filters.append((column, f"neq.{_format_value(value)}"))
        return self

    def gte(self, column: str, value: Any) -> "Query":
        self._filters.append((column, f"gte.{_format_value(value)}"))
        return self

    def lte(self, column: str, value: Any) -> "Query":
        self._filters.append((column, f"lte.{_format_value(value)}"))
        return self

    def in_(self, column: str, values: list[Any]) -> "Query":
        rendered = ",".join(_format_value(v) for v in values)
        self._filters.append((column, f"in.({rendered})"))
        return self

    def ilike(self, column: str, substring: str) -> "Query":
        """Case-insensitive substring match on one column."""
        self._filters.append((column, f"ilike.*{substring}*"))
        return self

    def ilike_any(self, columns: list[str], substring: str) -> "Query":
        """Case-insensitive substring match on any of the given columns.

        Columns of the same embedded resource (``person.name``,
        ``person.lastname``) are grouped under that resource's ``or``
        filter; the embed must be ``!inner`` to filter the parent rows.
        """
        if len(columns) == 1:
            return self.ilike(columns[0], substring)
        prefixes = {column.rpartition(".")[0] for column in columns}
        if len(prefixes) == 1 and "" not in prefixes:
            prefix = prefixes.pop()
            names = [column.rpartition(".")[2] for column in columns]
            conditions = ",".join(f"{name}.ilike.*{substring}*" for name in names)
            self._filters.append((f"{prefix}.or", f"({conditions})"))
            return self
        conditions = ",".join(f"{column}.ilike.*{substring}*" for column in columns)
        self._filters.append(("or", f"({conditions})"))
        return self

    def order(self, column: str, ascending: bool = True) -> "Query":
        self._order.append(f"{column}.{'asc' if ascending else 'desc'}")
        return self

    def range(self, start: int, end: int) -> "Query":
        """Restrict to rows ``start`` through ``end`` inclusive (0-based)."""
        if start < 0 or end < start:
            raise ValueError(f"Invalid range: {start}-{end}")
        self._offset = start
        self._limit = end - start + 1
        return self

    def limit(self, count: int) -> "Query":
        self._limit = count
        return self

    def paginate(self, page: int, limit: int) -> "Query":
        """1-based page of ``limit`` rows."""
        if page < 1 or limit < 1:
            raise ValueError(f"Invalid pagination: page={page}, limit={limit}")
        return self.range((page - 1) * limit, page * limit - 1)

    @property
    def has_filters(self) -> bool:
        return bool(self._filters)

    def filter_params(self) -> list[tuple[str, str]]:
        """Filters only, for update/delete targets."""
        return list(self._filters)

    def to_params(self) -> list[tuple[str, str]]:
        """Full parameter list for a read."""
        params: list[tuple[str, str]] = [("select", self.columns)]
        params.extend(self._filters)
        if self._order:
            params.append(("order", ",".join(self._order)))
        if self._offset is not None:
            params.append(("offset", str(self._offset)))
        if self._limit is not None:
            params.append(("limit", str(self._limit)))
        return params

    def describe(self) -> str:
        """Short human-readable criteria, used in not-found messages."""
        return "&".join(f"{key}={value}" for key, value in self._filters)

    def __repr__(self) -> str:
        return f"Query({self.table!r}, {self.to_params()!r})"
