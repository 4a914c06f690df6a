"""
Domain models for cost estimation.
Defines per-resource monthly costs and the cost delta of a template diff.
"""
from typing import Dict, Any, Tuple, Iterable
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum


ZERO = Decimal("0")


class Confidence(Enum):
    """How much of an estimate rests on resolved catalog prices."""
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    UNKNOWN = "unknown"


def _money(amount: Decimal) -> float:
    """Round a Decimal amount to cents for JSON output."""
    return float(amount.quantize(Decimal("0.01")))


@dataclass(frozen=True)
class MonthlyCost:
    """Monthly cost of a single resource, immutable once built."""
    amount: Decimal
    confidence: Confidence
    assumptions: Tuple[str, ...] = ()
    currency: str = "USD"

    def __post_init__(self):
        amount = self.amount if isinstance(self.amount, Decimal) else Decimal(str(self.amount))
        if amount < 0:
            raise ValueError(f"Monthly cost cannot be negative (got: {amount})")
        object.__setattr__(self, "amount", amount)
        object.__setattr__(self, "confidence", Confidence(self.confidence))
        object.__setattr__(self, "assumptions", tuple(self.assumptions))

    @classmethod
    def unknown(cls, reason: str) -> "MonthlyCost":
        """Zero cost with unknown confidence and the reason it could not be priced."""
        return cls(amount=ZERO, confidence=Confidence.UNKNOWN, assumptions=(reason,))

    @classmethod
    def excluded(cls) -> "MonthlyCost":
        """Zero cost for a resource type excluded by configuration."""
        return cls(amount=ZERO, confidence=Confidence.HIGH, assumptions=("excluded",))

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "amount": _money(self.amount),
            "currency": self.currency,
            "confidence": self.confidence.value,
            "assumptions": list(self.assumptions),
        }


@dataclass(frozen=True)
class ResourceCost:
    """Monthly cost attributed to one added or removed resource."""
    logical_id: str
    resource_type: str
    monthly_cost: MonthlyCost

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "logical_id": self.logical_id,
            "type": self.resource_type,
            "monthly_cost": self.monthly_cost.to_dict(),
        }


@dataclass(frozen=True)
class ModifiedResourceCost:
    """Before/after monthly cost of a modified resource."""
    logical_id: str
    resource_type: str
    old_monthly_cost: MonthlyCost
    new_monthly_cost: MonthlyCost

    @property
    def monthly_cost(self) -> MonthlyCost:
        return self.new_monthly_cost

    @property
    def cost_delta(self) -> Decimal:
        return self.new_monthly_cost.amount - self.old_monthly_cost.amount

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "logical_id": self.logical_id,
            "type": self.resource_type,
            "old_monthly_cost": self.old_monthly_cost.to_dict(),
            "new_monthly_cost": self.new_monthly_cost.to_dict(),
            "cost_delta": _money(self.cost_delta),
        }


def _sum(amounts: Iterable[Decimal]) -> Decimal:
    return sum(amounts, ZERO)


@dataclass(frozen=True)
class CostDelta:
    """
    Net monthly cost change implied by a template diff.

    The totals are derived from the three cost lists on every read, so they
    can never drift from the per-resource entries.
    """
    added_costs: Tuple[ResourceCost, ...] = field(default_factory=tuple)
    removed_costs: Tuple[ResourceCost, ...] = field(default_factory=tuple)
    modified_costs: Tuple[ModifiedResourceCost, ...] = field(default_factory=tuple)
    currency: str = "USD"

    def __post_init__(self):
        object.__setattr__(self, "added_costs", tuple(self.added_costs))
        object.__setattr__(self, "removed_costs", tuple(self.removed_costs))
        object.__setattr__(self, "modified_costs", tuple(self.modified_costs))

    @property
    def total_added(self) -> Decimal:
        return _sum(cost.monthly_cost.amount for cost in self.added_costs)

    @property
    def total_removed(self) -> Decimal:
        return _sum(cost.monthly_cost.amount for cost in self.removed_costs)

    @property
    def total_modified_delta(self) -> Decimal:
        return _sum(cost.cost_delta for cost in self.modified_costs)

    @property
    def total_delta(self) -> Decimal:
        return self.total_added - self.total_removed + self.total_modified_delta

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "currency": self.currency,
            "total_delta": _money(self.total_delta),
            "total_added": _money(self.total_added),
            "total_removed": _money(self.total_removed),
            "total_modified_delta": _money(self.total_modified_delta),
            "added_costs": [cost.to_dict() for cost in self.added_costs],
            "removed_costs": [cost.to_dict() for cost in self.removed_costs],
            "modified_costs": [cost.to_dict() for cost in self.modified_costs],
        }
