"""
Property-based tests for the ledger invariants.

Random sequences of entry and withdrawal operations, including ones that
are rejected, must always leave:
- back_safe == opening + sum(to_back_safe) - sum(withdrawal amounts)
- the snapshot equal to the replayed movement journal
- every stored entry's derived figures reproducible from its own fields
"""

from datetime import datetime, timezone
from decimal import Decimal

from hypothesis import HealthCheck, given, settings
from hypothesis import strategies as st
from hypothesis.strategies import composite

from cash_kernel.domain.balance_calculator import reconcile
from cash_kernel.domain.clock import DeterministicClock
from cash_kernel.exceptions import InsufficientBalanceError
from cash_kernel.services import ReconciliationService
from cash_kernel.store import InMemoryLedgerStore

amounts = st.decimals(
    min_value=Decimal("0.01"),
    max_value=Decimal("5000.00"),
    places=2,
    allow_nan=False,
    allow_infinity=False,
)
days = st.integers(min_value=1, max_value=28).map(lambda d: f"2024-02-{d:02d}")


@composite
def operations(draw):
    """One ledger operation as (name, args)."""
    kind = draw(st.sampled_from([
        "entry", "edit_entry", "delete_entry",
        "withdraw", "edit_withdrawal", "delete_withdrawal",
    ]))
    if kind in ("entry", "edit_entry"):
        return kind, {
            "date": draw(days),
            "cash_in": draw(amounts),
            "deposited": draw(amounts),
            "to_back_safe": draw(st.one_of(st.just(Decimal("0")), amounts)),
            "left_in_front": draw(amounts),
            "pick": draw(st.integers(min_value=0, max_value=50)),
        }
    if kind in ("withdraw", "edit_withdrawal"):
        return kind, {"amount": draw(amounts), "pick": draw(st.integers(min_value=0, max_value=50))}
    return kind, {"pick": draw(st.integers(min_value=0, max_value=50))}


def _apply(recon, clock, kind, args):
    clock.tick()
    entries = recon.history()
    withdrawals = recon.withdrawals()
    if kind == "entry":
        fields = {k: v for k, v in args.items() if k != "pick"}
        recon.create_or_update_entry(fields)
    elif kind == "edit_entry" and entries:
        target = entries[args["pick"] % len(entries)]
        fields = {k: v for k, v in args.items() if k != "pick"}
        recon.create_or_update_entry({**fields, "id": target.id}, is_editing=True)
    elif kind == "delete_entry" and entries:
        recon.delete_entry(entries[args["pick"] % len(entries)].id)
    elif kind == "withdraw":
        recon.create_withdrawal(args["amount"], "fuzz")
    elif kind == "edit_withdrawal" and withdrawals:
        target = withdrawals[args["pick"] % len(withdrawals)]
        recon.update_withdrawal(target.id, args["amount"])
    elif kind == "delete_withdrawal" and withdrawals:
        recon.delete_withdrawal(withdrawals[args["pick"] % len(withdrawals)].id)


@settings(max_examples=60, deadline=None, suppress_health_check=[HealthCheck.too_slow])
@given(
    opening_front=amounts,
    opening_back=amounts,
    ops=st.lists(operations(), min_size=1, max_size=25),
)
def test_conservation_holds_for_any_sequence(opening_front, opening_back, ops):
    clock = DeterministicClock(datetime(2024, 2, 1, 8, 0, tzinfo=timezone.utc))
    recon = ReconciliationService(InMemoryLedgerStore(), clock)
    recon.open_balances(opening_front, opening_back)

    for kind, args in ops:
        before = recon.balances.current()
        try:
            _apply(recon, clock, kind, args)
        except InsufficientBalanceError:
            # rejected before any write
            after = recon.balances.current()
            assert (after.front_safe, after.back_safe) == (before.front_safe, before.back_safe)

        balances = recon.balances.current()
        assert balances.back_safe >= 0
        transfers = sum((e.to_back_safe for e in recon.history()), Decimal("0"))
        taken = sum((w.amount for w in recon.withdrawals()), Decimal("0"))
        assert balances.back_safe == opening_back + transfers - taken

    recon.verify_balances()
    for entry in recon.history():
        figures = reconcile(
            entry.previous_balance,
            entry.cash_in,
            entry.deposited,
            entry.to_back_safe,
            entry.left_in_front,
        )
        assert figures.expected_front_safe == entry.expected_front_safe
        assert figures.difference == entry.difference
        assert figures.is_balanced == entry.is_balanced


@settings(max_examples=100, deadline=None)
@given(amount=amounts, back=amounts)
def test_withdrawal_limit_is_exact(amount, back):
    clock = DeterministicClock()
    recon = ReconciliationService(InMemoryLedgerStore(), clock)
    recon.open_balances("0", back)

    if amount <= back:
        recon.create_withdrawal(amount, "fuzz")
        assert recon.balances.current().back_safe == back - amount
    else:
        try:
            recon.create_withdrawal(amount, "fuzz")
        except InsufficientBalanceError:
            pass
        else:
            raise AssertionError("withdrawal above the balance was accepted")
        assert recon.balances.current().back_safe == back
