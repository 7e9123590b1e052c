from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional
from urllib.parse import parse_qs

from .normalize import coerce_price, parse_timestamp

ALL_CATEGORIES = "All"
SORT_NEWEST = "newest"
SORT_BUDGET_HIGH = "budget-high"
SORT_BUDGET_LOW = "budget-low"
SORT_KEYS = (SORT_NEWEST, SORT_BUDGET_HIGH, SORT_BUDGET_LOW)

FEATURED_COUNT = 3
SEARCH_FIELDS = ("title", "description", "location")


@dataclass(frozen=True)
class QueryState:
    """Search text, category and sort key applied to the job list."""

    search_text: str = ""
    category: str = ALL_CATEGORIES
    sort_key: str = SORT_NEWEST

    @property
    def has_filters(self) -> bool:
        """True when the search text or category narrows the list."""
        return bool(str(self.search_text or "").strip()) or self.category != ALL_CATEGORIES

    def cleared(self) -> "QueryState":
        return QueryState()


def _matches(job: Dict[str, Any], needle: str, category: str) -> bool:
    if needle:
        haystacks = (str(job.get(f) or "").lower() for f in SEARCH_FIELDS)
        if not any(needle in h for h in haystacks):
            return False
    return category == ALL_CATEGORIES or job.get("category") == category


def query(jobs: List[Dict[str, Any]], state: QueryState) -> List[Dict[str, Any]]:
    """
    Filter and sort jobs for display.

    Filtering keeps jobs whose title, description or location contains the
    search text (case-insensitive) and whose category equals the selected
    one exactly, unless it is "All". Sorting is stable, so equal keys keep
    their stored order:

    - budget-high: price, highest first
    - budget-low: price, lowest first
    - newest (and any unknown key): createdAt, most recent first

    Missing or non-numeric prices count as 0; missing or unparsable
    timestamps count as the epoch.
    """
    needle = str(state.search_text or "").strip().lower()
    category = state.category or ALL_CATEGORIES
    filtered = [job for job in jobs if _matches(job, needle, category)]

    if state.sort_key == SORT_BUDGET_HIGH:
        return sorted(filtered, key=lambda job: coerce_price(job.get("price")), reverse=True)
    if state.sort_key == SORT_BUDGET_LOW:
        return sorted(filtered, key=lambda job: coerce_price(job.get("price")))
    return sorted(filtered, key=lambda job: parse_timestamp(job.get("createdAt")), reverse=True)


def featured_view(results: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """The first few entries of an already filtered and sorted result."""
    return results[:FEATURED_COUNT]


def search_param(url_query: Optional[str]) -> str:
    """Value of `search` in a URL query string such as "?search=bakery"."""
    if not url_query:
        return ""
    params = parse_qs(url_query.lstrip("?"))
    values = params.get("search")
    return values[0] if values else ""


def _text_setting(settings: Mapping[str, Any], key: str) -> str:
    # non-string stored values count as unset
    value = settings.get(key)
    return value if isinstance(value, str) else ""


def resolve_query_state(
    url_query: Optional[str] = None,
    controls: Optional[Mapping[str, Optional[str]]] = None,
    settings: Optional[Mapping[str, Any]] = None,
) -> QueryState:
    """
    Work out the initial query state.

    A `search` parameter in the URL wins outright and stored settings are
    then ignored. Otherwise each field comes from the controls when set,
    then from the saved jobSearch/jobCategory/jobSort settings, then from
    the defaults.
    """
    controls = controls or {}
    settings = settings or {}

    category = controls.get("category") or ""
    sort_key = controls.get("sort_key") or ""

    from_url = search_param(url_query)
    if from_url:
        return QueryState(
            search_text=from_url,
            category=category or ALL_CATEGORIES,
            sort_key=sort_key or SORT_NEWEST,
        )

    return QueryState(
        search_text=controls.get("search_text") or _text_setting(settings, "jobSearch") or "",
        category=category or _text_setting(settings, "jobCategory") or ALL_CATEGORIES,
        sort_key=sort_key or _text_setting(settings, "jobSort") or SORT_NEWEST,
    )


def search_jobs(store, state: QueryState) -> List[Dict[str, Any]]:
    """Run the pipeline over everything the store currently holds."""
    return query(store.load_all(), state)
