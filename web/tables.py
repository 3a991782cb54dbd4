"""Filtering, sorting and paging for the request and user tables.

Tables are driven by query parameters so every view of a table is a plain
link: `q` (case-insensitive text filter), `sort` (column name, `-` prefix for
descending) and `page`. Several tables on one page use a parameter prefix.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Mapping, Optional, Sequence

from django.core.paginator import Page, Paginator
from django.utils.http import urlencode

from web.domain.models import TranslationRequest, UserProfile

PAGE_SIZE = 10

Getter = Callable[[Any], Any]


@dataclass(frozen=True)
class TableLayout:
    """Searchable text and sortable columns of one table.

    Attributes:
        search: Getters whose text values the `q` filter looks in.
        sorts: Column name to sort key getter.
    """

    search: tuple[Getter, ...]
    sorts: Mapping[str, Getter] = field(default_factory=dict)


def _text(value: Optional[str]) -> str:
    return (value or "").casefold()


REQUEST_TABLE = TableLayout(
    search=(
        lambda r: r.title,
        lambda r: r.original_file_name,
        lambda r: r.source_language,
        lambda r: r.target_language,
        lambda r: r.status.label,
    ),
    sorts={
        "title": lambda r: _text(r.title),
        "file": lambda r: _text(r.original_file_name),
        "status": lambda r: r.status.label,
        "created": lambda r: r.created_at,
    },
)

USER_TABLE = TableLayout(
    search=(
        lambda u: u.first_name,
        lambda u: u.last_name,
        lambda u: u.email,
        lambda u: u.user_name,
    ),
    sorts={
        "name": lambda u: _text(u.full_name),
        "email": lambda u: _text(u.email),
        "username": lambda u: _text(u.user_name),
        "registered": lambda u: u.created_at,
    },
)


@dataclass(frozen=True)
class TableQuery:
    """Table state read from the query string."""

    q: str = ""
    sort: str = ""
    page: str = "1"
    prefix: str = ""
    params: Mapping[str, str] = field(default_factory=dict)

    @classmethod
    def from_params(cls, params: Mapping[str, Any], prefix: str = "") -> "TableQuery":
        return cls(
            q=str(params.get(f"{prefix}q") or "").strip(),
            sort=str(params.get(f"{prefix}sort") or ""),
            page=str(params.get(f"{prefix}page") or "1"),
            prefix=prefix,
            params={k: str(params.get(k)) for k in params},
        )

    @property
    def column(self) -> str:
        return self.sort.lstrip("-")

    @property
    def descending(self) -> bool:
        return self.sort.startswith("-")

    def link(self, **changes: Any) -> str:
        """Query string for this page with some of this table's parameters changed.

        Parameters of other tables on the page are kept. Empty values are dropped.
        """
        params = dict(self.params)
        for key, value in changes.items():
            name = f"{self.prefix}{key}"
            if value in (None, ""):
                params.pop(name, None)
            else:
                params[name] = str(value)
        return "?" + urlencode(sorted(params.items())) if params else "?"


@dataclass
class Table:
    """One rendered page of a table."""

    query: TableQuery
    page: Page
    total: int
    sort_links: dict[str, str]

    @property
    def items(self) -> list[Any]:
        return list(self.page.object_list)

    @property
    def previous_link(self) -> Optional[str]:
        if not self.page.has_previous():
            return None
        return self.query.link(page=self.page.previous_page_number())

    @property
    def next_link(self) -> Optional[str]:
        if not self.page.has_next():
            return None
        return self.query.link(page=self.page.next_page_number())


def _sort_key(getter: Getter) -> Callable[[Any], tuple[bool, Any]]:
    # Missing values go last in ascending order.
    def key(item: Any) -> tuple[bool, Any]:
        value = getter(item)
        return (value is None, value if value is not None else 0)

    return key


def matches(layout: TableLayout, item: Any, needle: str) -> bool:
    if not needle:
        return True
    needle = needle.casefold()
    return any(needle in _text(get(item)) for get in layout.search)


def build_table(layout: TableLayout, items: Sequence[Any], query: TableQuery) -> Table:
    """Filter, sort and page `items`.

    An unknown sort column keeps the backend order. An out-of-range page
    shows the last page.
    """
    rows = [item for item in items if matches(layout, item, query.q)]
    getter = layout.sorts.get(query.column)
    if getter is not None:
        rows.sort(key=_sort_key(getter), reverse=query.descending)

    page = Paginator(rows, PAGE_SIZE).get_page(query.page)
    sort_links = {
        name: query.link(sort=name if query.sort != name else f"-{name}", page=None) for name in layout.sorts
    }
    return Table(query=query, page=page, total=len(rows), sort_links=sort_links)


def request_table(items: Sequence[TranslationRequest], params: Mapping[str, Any], prefix: str = "") -> Table:
    return build_table(REQUEST_TABLE, items, TableQuery.from_params(params, prefix))


def user_table(items: Sequence[UserProfile], params: Mapping[str, Any], prefix: str = "") -> Table:
    return build_table(USER_TABLE, items, TableQuery.from_params(params, prefix))
