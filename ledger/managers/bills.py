"""
Ledger

Owns each user's bills in insertion order.

DESIGN DECISION: Bills store only their category id. Every read returns
copies whose `category` is resolved against the CategoryRegistry at
that moment, so renames show up immediately and deleted categories
simply resolve to nothing while the id is kept.

Id assignment per user:
- id 0 means "assign one": the bill takes the user's counter, which then
  advances by one
- an explicit id that collides with an existing bill is rejected and the
  counter is left untouched
- any other explicit id is kept and the counter becomes
  max(counter, id + 1)
"""

from dataclasses import dataclass, field
from typing import Optional

import structlog

from ledger.errors import BillNotFoundError, DuplicateBillError
from ledger.managers.categories import CategoryRegistry
from ledger.models.entities import UNASSIGNED_ID, Bill, QueryCriteria


logger = structlog.get_logger()


@dataclass
class _UserBills:
    """One user's bills, their order, and the next auto-assigned id."""
    by_id: dict[int, Bill] = field(default_factory=dict)
    order: list[int] = field(default_factory=list)
    next_id: int = 1

    def append(self, bill: Bill) -> None:
        self.by_id[bill.id] = bill
        self.order.append(bill.id)

    def remove(self, bill_id: int) -> Optional[Bill]:
        bill = self.by_id.pop(bill_id, None)
        if bill is not None:
            self.order.remove(bill_id)
        return bill

    def ordered(self) -> list[Bill]:
        return [self.by_id[bill_id] for bill_id in self.order]


class Ledger:
    """
    Per-user bill store with read-time category resolution.

    Args:
        categories: Registry used to resolve each bill's category id
    """

    def __init__(self, categories: CategoryRegistry):
        self._categories = categories
        self._by_user: dict[int, _UserBills] = {}

    def _namespace(self, user_id: int) -> _UserBills:
        return self._by_user.setdefault(user_id, _UserBills())

    def _resolved(self, user_id: int, bill: Bill) -> Bill:
        category = self._categories.find_by_id(user_id, bill.category_id)
        return bill.model_copy(update={"category": category})

    @staticmethod
    def _stored(bill: Bill) -> Bill:
        return bill.model_copy(update={"category": None})

    # =========================================================================
    # MUTATIONS
    # =========================================================================

    def add(self, user_id: int, bill: Bill) -> Bill:
        """
        Store a bill, assigning an id when it has none.

        Returns:
            The stored bill (resolved copy) carrying its final id

        Raises:
            DuplicateBillError: The explicit id is already used by this user
        """
        ns = self._namespace(user_id)
        if bill.id == UNASSIGNED_ID:
            stored = self._stored(bill).model_copy(update={"id": ns.next_id})
            ns.next_id += 1
        else:
            if bill.id in ns.by_id:
                raise DuplicateBillError(f"Bill {bill.id} already exists")
            stored = self._stored(bill)
            ns.next_id = max(ns.next_id, bill.id + 1)
        ns.append(stored)
        return self._resolved(user_id, stored)

    def update(self, user_id: int, bill: Bill) -> Bill:
        """
        Replace the bill with the same id, keeping its position.

        Raises:
            BillNotFoundError: No bill with that id
        """
        ns = self._by_user.get(user_id)
        if ns is None or bill.id not in ns.by_id:
            raise BillNotFoundError(f"Bill {bill.id} not found")
        stored = self._stored(bill)
        ns.by_id[bill.id] = stored
        return self._resolved(user_id, stored)

    def delete(self, user_id: int, bill_id: int) -> Bill:
        """
        Remove a bill. Its id is never handed out again by the counter.

        Raises:
            BillNotFoundError: No bill with that id
        """
        ns = self._by_user.get(user_id)
        removed = ns.remove(bill_id) if ns else None
        if removed is None:
            raise BillNotFoundError(f"Bill {bill_id} not found")
        return removed

    # =========================================================================
    # READS
    # =========================================================================

    def list_for_user(self, user_id: int) -> list[Bill]:
        """Resolved copies of every bill, oldest insertion first."""
        ns = self._by_user.get(user_id)
        if ns is None:
            return []
        return [self._resolved(user_id, b) for b in ns.ordered()]

    def find_by_id(self, user_id: int, bill_id: int) -> Optional[Bill]:
        ns = self._by_user.get(user_id)
        if ns is None or bill_id not in ns.by_id:
            return None
        return self._resolved(user_id, ns.by_id[bill_id])

    def next_id(self, user_id: int) -> int:
        """The id the next auto-assigned bill would receive."""
        ns = self._by_user.get(user_id)
        return ns.next_id if ns else 1

    def query_by_criteria(self, user_id: int, criteria: QueryCriteria) -> list[Bill]:
        """Bills whose timestamp and resolved category name match `criteria`."""
        return [
            b for b in self.list_for_user(user_id)
            if criteria.matches(b.timestamp, b.category_name)
        ]

    # =========================================================================
    # PERSISTENCE
    # =========================================================================

    def load(self, data: dict[int, list[Bill]]) -> None:
        """
        Replace all bills. Each user's counter becomes max(id) + 1.

        References to categories that no longer exist are kept as-is and
        reported once as a warning.
        """
        self._by_user = {}
        unresolved = 0
        for user_id, bills in data.items():
            ns = self._namespace(user_id)
            for bill in bills:
                ns.append(self._stored(bill))
                if (
                    bill.category_id is not None
                    and self._categories.find_by_id(user_id, bill.category_id) is None
                ):
                    unresolved += 1
            ns.next_id = max(ns.by_id, default=0) + 1

        if unresolved:
            logger.warning(
                "Bills reference missing categories",
                unresolved_count=unresolved,
            )

    def dump(self) -> dict[int, list[Bill]]:
        return {
            user_id: [b.model_copy() for b in ns.ordered()]
            for user_id, ns in self._by_user.items()
        }
