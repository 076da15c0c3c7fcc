from .ordering import all_numeric, order_ids, parse_number, render_ids, unique_iter
from .predicates import filter_keys, match_expr

__all__ = [
    "all_numeric",
    "filter_keys",
    "match_expr",
    "order_ids",
    "parse_number",
    "render_ids",
    "unique_iter",
]
