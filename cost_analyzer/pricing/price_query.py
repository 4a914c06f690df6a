"""
Price query value types.
A PriceQuery is the (service, region, filter-set) shape used both for cache
keys and for catalog lookups.
"""
from typing import Any, Dict, FrozenSet, Iterable, List, Union, Tuple
import dataclasses
from dataclasses import dataclass


@dataclass(frozen=True)
class PriceFilter:
    """A single TERM_MATCH attribute filter. Identity is field + value."""
    field: str
    value: str
    type: str = dataclasses.field(default="TERM_MATCH", compare=False)

    def key(self) -> str:
        return f"{self.field}:{self.value}"


FilterLike = Union[PriceFilter, Tuple[str, str], Dict[str, str]]


def _to_filter(item: FilterLike) -> PriceFilter:
    if isinstance(item, PriceFilter):
        return item
    if isinstance(item, dict):
        return PriceFilter(
            field=item["field"],
            value=str(item["value"]),
            type=item.get("type", "TERM_MATCH"),
        )
    field_name, value = item
    return PriceFilter(field=field_name, value=str(value))


@dataclass(frozen=True)
class PriceQuery:
    """
    Immutable pricing lookup request.

    Two queries are equal when service code, region and the unordered filter
    set are equal; duplicated filters collapse.
    """
    service_code: str
    region: str
    filters: FrozenSet[PriceFilter] = frozenset()

    def __post_init__(self):
        if not isinstance(self.filters, frozenset):
            object.__setattr__(self, "filters", frozenset(_to_filter(f) for f in self.filters))

    @classmethod
    def create(
        cls,
        service_code: str,
        region: str,
        filters: Iterable[FilterLike] = ()
    ) -> "PriceQuery":
        """
        Build a query from loosely typed filters.

        Args:
            service_code: Catalog service code (e.g., 'AmazonS3')
            region: Catalog region name (e.g., 'US East (N. Virginia)')
            filters: PriceFilter objects, (field, value) tuples or dicts

        Returns:
            PriceQuery instance
        """
        return cls(
            service_code=service_code,
            region=region,
            filters=frozenset(_to_filter(f) for f in filters),
        )

    def sorted_filters(self) -> List[PriceFilter]:
        return sorted(self.filters, key=lambda f: f.key())

    def cache_key(self) -> str:
        """
        Deterministic cache key.

        Format: ``{service_code}:{region}:{field:value|field:value...}`` with
        filters sorted lexicographically by ``field:value``.
        """
        filter_str = "|".join(f.key() for f in self.sorted_filters())
        return f"{self.service_code}:{self.region}:{filter_str}"

    def to_api_filters(self) -> List[Dict[str, Any]]:
        """Filters in the shape expected by the Price List GetProducts call."""
        api_filters = [
            {"Type": f.type, "Field": f.field, "Value": f.value}
            for f in self.sorted_filters()
        ]
        if not any(f.field == "location" for f in self.filters):
            api_filters.append({"Type": "TERM_MATCH", "Field": "location", "Value": self.region})
        return api_filters
