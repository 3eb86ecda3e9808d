"""
Query module for property discovery.

Normalizes raw search input into an immutable specification and compiles it
into a filter/sort/paginate pipeline against the listing store.
"""

from .specification import QuerySpecification, collect_query_params, normalize
from .compiler import (
    CompiledQuery,
    Operator,
    Predicate,
    RadiusFilter,
    ResultPage,
    SortTerm,
    compile_query,
    distance_from,
    execute,
)

__all__ = [
    'QuerySpecification',
    'collect_query_params',
    'normalize',
    'CompiledQuery',
    'Operator',
    'Predicate',
    'RadiusFilter',
    'ResultPage',
    'SortTerm',
    'compile_query',
    'distance_from',
    'execute',
]
