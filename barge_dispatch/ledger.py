# barge-dispatch/barge_dispatch/ledger.py
"""
Capacity ledger: per-barge, per-product remaining volume during planning.

The ledger is the engine's private working copy of the fleet's volumes.
It answers two questions before any delivery is planned:
- Can barge B pump `quantity` of product P right now?
- Is barge B barred from P until it recharges at the TERMINAL?

A barge is barred from P when its remaining P volume drops below the
smallest quantity of P still requested by an unserved request.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional, Set, Tuple

from .models import Barge, BargeState, ProductType, RefuelingRequest

logger = logging.getLogger(__name__)


class CapacityLedger:
    """
    Tracks remaining volume per (barge, product) and mandatory recharges.

    Attributes:
        capacities: Tank capacity per (barge_id, product)
        remaining: Working volume per (barge_id, product)
        barred: (barge_id, product) pairs that must recharge before the next delivery
    """

    def __init__(self, barges: Iterable[Barge], states: Dict[str, BargeState]) -> None:
        self.capacities: Dict[Tuple[str, ProductType], float] = {}
        self.remaining: Dict[Tuple[str, ProductType], float] = {}
        self.barred: Set[Tuple[str, ProductType]] = set()

        for barge in barges:
            state = states[barge.barge_id]
            for tank in barge.tanks:
                key = (barge.barge_id, tank.product)
                self.capacities[key] = tank.capacity
                self.remaining[key] = state.volume(tank.product)

    def capacity(self, barge_id: str, product: ProductType) -> float:
        return self.capacities.get((barge_id, product), 0.0)

    def volume(self, barge_id: str, product: ProductType) -> float:
        return self.remaining.get((barge_id, product), 0.0)

    def is_barred(self, barge_id: str, product: ProductType) -> bool:
        return (barge_id, product) in self.barred

    def can_deliver(self, barge_id: str, product: ProductType, quantity: float) -> bool:
        """True if the barge can pump `quantity` of `product` without a recharge."""
        if (barge_id, product) not in self.capacities:
            return False
        if self.is_barred(barge_id, product):
            return False
        return self.volume(barge_id, product) >= quantity

    def needs_recharge(self, barge_id: str, product: ProductType, quantity: float) -> bool:
        return not self.can_deliver(barge_id, product, quantity)

    def could_ever_deliver(self, barge_id: str, product: ProductType, quantity: float) -> bool:
        """True if a full tank of `product` would cover `quantity`."""
        return self.capacity(barge_id, product) >= quantity

    def deliver(self, barge_id: str, product: ProductType, quantity: float) -> float:
        """
        Record a delivery and return the remaining volume.

        Raises:
            ValueError: If the barge does not have the volume (planner bug)
        """
        key = (barge_id, product)
        current = self.volume(barge_id, product)
        if key not in self.capacities or current < quantity:
            raise ValueError(
                f"Barge {barge_id} cannot deliver {quantity:g} {product.value} (remaining {current:g})"
            )
        self.remaining[key] = current - quantity
        return self.remaining[key]

    def recharge(self, barge_id: str, product: ProductType) -> float:
        """
        Top a tank up to capacity and lift any bar on it.

        Returns:
            The volume loaded
        """
        key = (barge_id, product)
        refill = self.capacities[key] - self.remaining[key]
        self.remaining[key] = self.capacities[key]
        self.barred.discard(key)
        return refill

    def refresh_mandatory_recharges(self, pending: List[RefuelingRequest]) -> List[Tuple[str, ProductType]]:
        """
        Re-evaluate the mandatory-recharge rule against the unserved requests.

        Bars stay in place until the barge recharges, even if the request
        that triggered them has since been served.

        Returns:
            The (barge_id, product) pairs newly barred by this call
        """
        minimum = minimum_pending_quantities(pending)
        newly_barred: List[Tuple[str, ProductType]] = []

        for key, volume in self.remaining.items():
            if key in self.barred:
                continue
            smallest: Optional[float] = minimum.get(key[1])
            if smallest is not None and volume < smallest:
                self.barred.add(key)
                newly_barred.append(key)
                logger.debug(
                    "Barge %s barred from %s: %.1f left, smallest pending request %.1f",
                    key[0], key[1].value, volume, smallest,
                )
        return newly_barred


def minimum_pending_quantities(pending: Iterable[RefuelingRequest]) -> Dict[ProductType, float]:
    """Smallest requested quantity per product across `pending` requests."""
    minimum: Dict[ProductType, float] = {}
    for request in pending:
        for item in request.products:
            current = minimum.get(item.product)
            if current is None or item.quantity < current:
                minimum[item.product] = item.quantity
    return minimum
