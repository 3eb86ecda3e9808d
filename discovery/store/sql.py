"""
SQL rendering for compiled queries.

Produces parameterized PostgreSQL ($n placeholders) for asyncpg. Column
names come only from the whitelist below, never from user input.
"""

from typing import Any, List, Tuple

from discovery.query.compiler import CompiledQuery, Operator, Predicate, SortTerm


LISTINGS_TABLE = "listings"

LISTING_COLUMNS = (
    "id", "owner_id", "title", "description", "property_type", "listing_type",
    "price", "price_frequency", "address", "state", "lga", "latitude",
    "longitude", "bedrooms", "bathrooms", "size_sqm", "has_bq", "nepa_status",
    "water_source", "internet_type", "security_type", "status", "verified_at",
    "is_featured", "created_at", "updated_at", "views_count",
)

_COMPARISONS = {
    Operator.EQ: "=",
    Operator.GTE: ">=",
    Operator.LTE: "<=",
}


def haversine_sql(lat_param: str, lng_param: str) -> str:
    """Great-circle distance in km from ($lat, $lng) to each row."""
    return (
        "(6371.0 * 2 * asin(sqrt("
        f"power(sin(radians(latitude - {lat_param}) / 2), 2) + "
        f"cos(radians({lat_param})) * cos(radians(latitude)) * "
        f"power(sin(radians(longitude - {lng_param}) / 2), 2))))"
    )


RADIUS_SQL = f"""
    SELECT id
    FROM {LISTINGS_TABLE}
    WHERE status = 'live'
      AND latitude IS NOT NULL
      AND longitude IS NOT NULL
      AND {haversine_sql('$1', '$2')} <= $3
"""


LISTING_BY_ID_SQL = f"""
    SELECT {', '.join(LISTING_COLUMNS)}
    FROM {LISTINGS_TABLE}
    WHERE id = $1 AND status = 'live'
"""


class _Params:
    """Accumulates positional arguments and hands out placeholders."""

    def __init__(self):
        self.values: List[Any] = []

    def add(self, value: Any) -> str:
        self.values.append(_db_value(value))
        return f"${len(self.values)}"


def _db_value(value: Any) -> Any:
    if isinstance(value, frozenset):
        return sorted(_db_value(item) for item in value)
    return getattr(value, "value", value)


def _column(name: str) -> str:
    if name not in LISTING_COLUMNS:
        raise ValueError(f"Unknown listing column: {name}")
    return name


def escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def render_predicate(predicate: Predicate, params: _Params) -> str:
    if predicate.op is Operator.CONTAINS_TEXT:
        placeholder = params.add(f"%{escape_like(str(predicate.value))}%")
        clauses = [f"{_column(name)} ILIKE {placeholder}" for name in predicate.fields]
        return "(" + " OR ".join(clauses) + ")"

    column = _column(predicate.field)
    if predicate.op is Operator.NOT_NULL:
        return f"{column} IS NOT NULL"
    if predicate.op is Operator.IN:
        return f"{column} = ANY({params.add(predicate.value)}::text[])"
    if predicate.op is Operator.OVERLAPS:
        return f"{column} && {params.add(predicate.value)}::text[]"
    return f"{column} {_COMPARISONS[predicate.op]} {params.add(predicate.value)}"


def render_order(ordering: Tuple[SortTerm, ...], params: _Params) -> str:
    terms = []
    for term in ordering:
        if term.field == "distance":
            lat, lng = term.origin
            expression = haversine_sql(params.add(lat), params.add(lng))
        else:
            expression = _column(term.field)
        direction = "DESC" if term.descending else "ASC"
        terms.append(f"{expression} {direction} NULLS LAST")
    return ", ".join(terms)


def render_where(compiled: CompiledQuery, params: _Params) -> str:
    clauses = [render_predicate(predicate, params) for predicate in compiled.predicates]
    return " AND ".join(clauses) if clauses else "TRUE"


def build_count(compiled: CompiledQuery) -> Tuple[str, List[Any]]:
    """Count over the filtered set; pagination never applies here."""
    params = _Params()
    where = render_where(compiled, params)
    return f"SELECT count(*) FROM {LISTINGS_TABLE} WHERE {where}", params.values


def build_select(compiled: CompiledQuery) -> Tuple[str, List[Any]]:
    params = _Params()
    where = render_where(compiled, params)
    order = render_order(compiled.ordering, params)
    limit = params.add(compiled.limit)
    offset = params.add(compiled.offset)
    sql = (
        f"SELECT {', '.join(LISTING_COLUMNS)} FROM {LISTINGS_TABLE} "
        f"WHERE {where} ORDER BY {order} LIMIT {limit} OFFSET {offset}"
    )
    return sql, params.values
