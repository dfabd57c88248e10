from typing import Iterable, List, Optional

from db.models import Product


def categories(products: Iterable[Product]) -> List[str]:
    """Sorted distinct non-empty categories, compared case-insensitively."""
    seen = {}
    for p in products:
        cat = p.category.strip()
        if cat and cat.lower() not in seen:
            seen[cat.lower()] = cat
    return sorted(seen.values(), key=str.lower)


def filter_products(
    products: Iterable[Product],
    query: str = "",
    category: Optional[str] = None,
) -> List[Product]:
    """
    Case-insensitive filter for the storefront.
    Every word of query has to appear in the name, description or category.
    """
    words = (query or "").strip().lower().split()
    cat = (category or "").strip().lower()

    results = []
    for p in products:
        if cat and p.category.strip().lower() != cat:
            continue
        haystack = f"{p.name} {p.description} {p.category}".lower()
        if all(w in haystack for w in words):
            results.append(p)
    return results
