from typing import Callable, Iterable, List, Set

from ..logging import get_logger
from .codes import sort_additive_keys, sort_allergen_keys
from .models import CanonicalProduct, ProductCandidate, new_product_id

LOG = get_logger("normalize")


def normalize_name(name: str) -> str:
    """Trimmed display name; empty when the input is blank or not a string."""
    return name.strip() if isinstance(name, str) else ""


def name_key(name: str) -> str:
    """Comparison key for duplicate detection (case-insensitive)."""
    return normalize_name(name).lower()


def normalize_products(
    candidates: Iterable[ProductCandidate],
    *,
    id_factory: Callable[[], str] = new_product_id,
) -> List[CanonicalProduct]:
    """Turn candidates into unique canonical products.

    Candidates are processed in input order. Blank names are dropped. A later
    candidate whose name matches an earlier one case-insensitively is dropped
    entirely; its codes are not merged into the kept product.
    """
    seen: Set[str] = set()
    out: List[CanonicalProduct] = []
    dropped_blank = 0
    dropped_dupes = 0
    for candidate in candidates:
        name = normalize_name(candidate.name)
        if not name:
            dropped_blank += 1
            continue
        key = name_key(name)
        if key in seen:
            dropped_dupes += 1
            LOG.debug("Dropping duplicate product name %r", name)
            continue
        seen.add(key)
        out.append(
            CanonicalProduct(
                id=id_factory(),
                name=name,
                allergens=sort_allergen_keys(candidate.allergens),
                additives=sort_additive_keys(candidate.additives),
            )
        )
    LOG.debug(
        "Normalized %d product(s); dropped %d blank and %d duplicate name(s)",
        len(out),
        dropped_blank,
        dropped_dupes,
    )
    return out
