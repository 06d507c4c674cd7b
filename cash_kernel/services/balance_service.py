"""
SafeBalanceService -- balance snapshot and its movement journal.

Responsibility:
    Owns the two records that describe current safe balances: the
    ``SafeBalances`` snapshot and the append-only ``BalanceMovement``
    journal.  Every change to the snapshot is first written as a movement,
    so the snapshot can always be replayed and audited.

Architecture position:
    Kernel > Services.  Used by ReconciliationService; never called by the
    archive engine, which only reads the snapshot.

Invariants enforced:
    - Journal first, snapshot second: a movement is appended before the
      snapshot that reflects it is written.
    - Replay: the per-safe sum of movement deltas equals the snapshot.
    - Zero deltas are not journaled.

Failure modes:
    - InsufficientBalanceError from ``require_back_safe`` (callers check
      before writing anything).
"""

from decimal import Decimal
from uuid import uuid4

from cash_kernel.db.types import ZERO, coerce_money
from cash_kernel.domain.clock import Clock, SystemClock
from cash_kernel.domain.records import (
    BalanceMovement,
    MovementKind,
    Safe,
    SafeBalances,
)
from cash_kernel.exceptions import InsufficientBalanceError
from cash_kernel.logging_config import get_logger
from cash_kernel.selectors.ledger_selector import LedgerSelector
from cash_kernel.store.base import Collection, LedgerStore

logger = get_logger("services.balance")


class SafeBalanceService:
    """Snapshot reads, journaled snapshot writes and replay."""

    def __init__(self, store: LedgerStore, clock: Clock | None = None):
        self.store = store
        self._clock = clock or SystemClock()
        self._selector = LedgerSelector(store)

    def current(self) -> SafeBalances:
        return self._selector.balances()

    def movements(self) -> list[BalanceMovement]:
        """Journal, newest first."""
        return self._selector.movements()

    def require_back_safe(self, amount: Decimal) -> SafeBalances:
        """
        Raise unless the back safe holds at least ``amount``.

        Returns the snapshot the check was made against.
        """
        balances = self.current()
        if amount > balances.back_safe:
            logger.warning(
                "insufficient_back_safe_balance",
                extra={"requested": amount, "available": balances.back_safe},
            )
            raise InsufficientBalanceError(Safe.BACK.value, amount, balances.back_safe)
        return balances

    def open_balances(self, front_safe, back_safe, note: str | None = None) -> SafeBalances:
        """
        Set opening amounts for both safes.

        Recorded as OPENING movements for the difference from the current
        snapshot, so calling it on a fresh store journals the full amounts.
        """
        front = coerce_money(front_safe)
        back = coerce_money(back_safe)
        balances = self.current()
        result = self.apply(
            kind=MovementKind.OPENING,
            front_delta=front - balances.front_safe,
            back_delta=back - balances.back_safe,
            note=note,
        )
        logger.info(
            "opening_balances_set",
            extra={"front_safe": result.front_safe, "back_safe": result.back_safe},
        )
        return result

    def opening_back_safe(self) -> Decimal:
        """Sum of every OPENING movement on the back safe."""
        return sum(
            (
                m.delta
                for m in self.movements()
                if m.safe == Safe.BACK and m.kind == MovementKind.OPENING
            ),
            ZERO,
        )

    def adjust_back_safe(
        self,
        delta: Decimal,
        kind: MovementKind,
        source_id: str | None = None,
        note: str | None = None,
    ) -> SafeBalances:
        return self.apply(kind=kind, back_delta=delta, source_id=source_id, note=note)

    def apply(
        self,
        kind: MovementKind,
        front_delta: Decimal = ZERO,
        back_delta: Decimal = ZERO,
        source_id: str | None = None,
        note: str | None = None,
    ) -> SafeBalances:
        """
        Journal the non-zero deltas, then write the adjusted snapshot once.

        The snapshot's ``last_updated`` is stamped even when both deltas are
        zero: the operation still happened.
        """
        now = self._clock.now()
        for safe, delta in ((Safe.FRONT, front_delta), (Safe.BACK, back_delta)):
            if delta != ZERO:
                movement = BalanceMovement(
                    id=str(uuid4()),
                    safe=safe,
                    delta=delta,
                    kind=kind,
                    source_id=source_id,
                    note=note,
                    created_at=now,
                )
                self.store.put(Collection.MOVEMENTS, movement.to_record())

        balances = self.current()
        updated = SafeBalances(
            front_safe=balances.front_safe + front_delta,
            back_safe=balances.back_safe + back_delta,
            last_updated=now,
        )
        self.store.put(Collection.BALANCES, updated.to_record())
        logger.debug(
            "balances_updated",
            extra={
                "kind": kind.value,
                "front_delta": front_delta,
                "back_delta": back_delta,
                "front_safe": updated.front_safe,
                "back_safe": updated.back_safe,
            },
        )
        return updated

    def replay(self) -> SafeBalances:
        """Rebuild balances from the movement journal alone (no write)."""
        front = ZERO
        back = ZERO
        last = None
        for movement in self.movements():
            if movement.safe == Safe.FRONT:
                front += movement.delta
            else:
                back += movement.delta
            if last is None or movement.created_at > last:
                last = movement.created_at
        return SafeBalances(front_safe=front, back_safe=back, last_updated=last)
