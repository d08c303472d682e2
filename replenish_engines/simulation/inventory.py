"""
FIFO inventory ledger for the day-by-day simulation.

The queue is owned by one ``run_daily_loop`` call and discarded with it.
Lots are ordered by ``(arrival_day, batch_index)``; the order is restored
after every day's arrivals, so lots pushed out of order still drain
oldest-first.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from decimal import Decimal

from replenish_engines.simulation.records import ArrivalEvent


@dataclass(slots=True)
class InventoryLot:
    """One batch's remaining sellable units.  Mutated only by FifoQueue."""

    batch_index: int
    qty_remaining: Decimal
    unit_cost: Decimal
    unit_freight: Decimal
    arrival_day: int

    @classmethod
    def from_arrival(cls, event: ArrivalEvent) -> InventoryLot:
        return cls(
            batch_index=event.batch_index,
            qty_remaining=event.qty,
            unit_cost=event.unit_cost,
            unit_freight=event.unit_freight,
            arrival_day=event.arrival_day,
        )

    @property
    def landed_unit_cost(self) -> Decimal:
        return self.unit_cost + self.unit_freight

    @property
    def sort_key(self) -> tuple[int, int]:
        return (self.arrival_day, self.batch_index)


class FifoQueue:
    """
    Ordered collection of InventoryLot, oldest arrival at the head.

    Invariants:
        - No lot in the queue has qty_remaining <= 0.
        - ``total`` equals the sum of qty_remaining over queued lots.
    """

    def __init__(self) -> None:
        self._lots: list[InventoryLot] = []

    def __len__(self) -> int:
        return len(self._lots)

    def __bool__(self) -> bool:
        return bool(self._lots)

    def __iter__(self) -> Iterator[InventoryLot]:
        return iter(self._lots)

    @property
    def head(self) -> InventoryLot:
        return self._lots[0]

    @property
    def total(self) -> Decimal:
        return sum((lot.qty_remaining for lot in self._lots), Decimal("0"))

    def receive(self, lots: Iterable[InventoryLot]) -> Decimal:
        """Queue the non-empty lots, restore FIFO order, return units added."""
        added = Decimal("0")
        for lot in lots:
            if lot.qty_remaining <= 0:
                continue
            self._lots.append(lot)
            added += lot.qty_remaining
        self._lots.sort(key=lambda lot: lot.sort_key)
        return added

    def take_from_head(self, wanted: Decimal) -> tuple[InventoryLot, Decimal]:
        """
        Remove up to ``wanted`` units from the head lot.

        Returns the lot drawn from and the units taken.  The lot is evicted
        when it is exhausted.
        """
        lot = self._lots[0]
        take = min(wanted, lot.qty_remaining)
        lot.qty_remaining -= take
        if lot.qty_remaining <= 0:
            self._lots.pop(0)
        return lot, take

    def snapshot(self) -> tuple[InventoryLot, ...]:
        """Copies of the queued lots, head first."""
        return tuple(
            InventoryLot(
                batch_index=lot.batch_index,
                qty_remaining=lot.qty_remaining,
                unit_cost=lot.unit_cost,
                unit_freight=lot.unit_freight,
                arrival_day=lot.arrival_day,
            )
            for lot in self._lots
        )
