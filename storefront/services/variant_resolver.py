# storefront/services/variant_resolver.py
"""
Picks the one priced variant that applies to a product.

Pinned variant: that exact variant, only if it belongs to the product and is
active. Never substituted.
Unpinned: default+active -> first active -> first of any kind (last resort,
flagged inactive so callers can warn or refuse).
"""
from dataclasses import dataclass
from typing import Any, Iterable, Optional, Union

from storefront.domain.errors import VariantUnavailable

REQUESTED = "requested"
DEFAULT = "default"
FIRST_ACTIVE = "first_active"
LAST_RESORT = "last_resort"


@dataclass(frozen=True)
class Resolved:
    variant: Any
    was_default: bool
    source: str

    @property
    def is_active(self) -> bool:
        return bool(self.variant.is_active)

    def unwrap(self):
        return self.variant


@dataclass(frozen=True)
class Unavailable:
    message: str

    @property
    def is_active(self) -> bool:
        return False

    def unwrap(self):
        raise VariantUnavailable(self.message)


Resolution = Union[Resolved, Unavailable]


def resolve(product, variants: Iterable, requested_variant_id: Optional[str] = None) -> Resolution:
    variants = list(variants)

    if requested_variant_id:
        for v in variants:
            if v.id == requested_variant_id and v.product_id == product.id and v.is_active:
                return Resolved(variant=v, was_default=bool(v.is_default), source=REQUESTED)
        return Unavailable(f"Requested variant {requested_variant_id} is not available for {product.name}")

    for v in variants:
        if v.is_default and v.is_active:
            return Resolved(variant=v, was_default=True, source=DEFAULT)

    for v in variants:
        if v.is_active:
            return Resolved(variant=v, was_default=False, source=FIRST_ACTIVE)

    if variants:
        return Resolved(variant=variants[0], was_default=bool(variants[0].is_default), source=LAST_RESORT)

    return Unavailable(f"Product {product.name} has no variants")
