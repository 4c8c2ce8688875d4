"""Mortgage ledger reconciler - rebuild total paid from unlinked payment transactions"""

import logging
from collections import defaultdict
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from banksim.domain.models import LedgerPayment, MortgageStatus, MortgageTerms, TransactionType
from banksim.domain.reconciliation import attribute_payments
from banksim.infrastructure.database.models import Mortgage
from banksim.infrastructure.database.repositories import MortgageRepository, TransactionRepository
from banksim.infrastructure.observability.metrics import reconciled_mortgage_counter
from banksim.utils.clock import Clock, SystemClock, ensure_utc


class MortgageReconciler:
    def __init__(self, db: Session, clock: Optional[Clock] = None):
        self.db = db
        self.clock = clock or SystemClock()
        self.mortgages = MortgageRepository(db)
        self.transactions = TransactionRepository(db)

    def reconcile(self, owner_id: str, slot_id: int) -> List[Mortgage]:
        """
        Recompute total paid for every accepted mortgage in the slot.

        Works client by client: each MORTGAGE_PAYMENT is attributed to the
        nearest-amount mortgage that was active on the payment day. Best-effort
        only, since the ledger does not record which mortgage a payment was for.

        Returns:
            All of the slot's mortgages after the update
        """
        by_client: Dict[int, List[Mortgage]] = defaultdict(list)
        for mortgage in self.mortgages.list_by_slot(owner_id, slot_id, status=MortgageStatus.ACCEPTED, for_update=True):
            if mortgage.client_id is not None:
                by_client[mortgage.client_id].append(mortgage)

        now = self.clock.now()
        updated = 0
        for client_id, client_mortgages in by_client.items():
            payments = [
                LedgerPayment(game_day=tx.game_day, amount=tx.amount, created_at=ensure_utc(tx.created_at))
                for tx in self.transactions.list_by_client_and_types_ordered(client_id, [TransactionType.MORTGAGE_PAYMENT])
            ]
            totals = attribute_payments([self._terms(m) for m in client_mortgages], payments)

            for mortgage in client_mortgages:
                mortgage.total_paid = totals[mortgage.id]
                mortgage.updated_at = now
                self.mortgages.save(mortgage)
                updated += 1

        reconciled_mortgage_counter.inc(updated)
        logging.info(
            "Mortgages reconciled",
            extra={
                "owner_id": owner_id,
                "slot_id": slot_id,
                "step": "mortgage_reconcile",
                "clients": len(by_client),
                "mortgages": updated,
            },
        )
        return self.mortgages.list_by_slot(owner_id, slot_id)

    @staticmethod
    def _terms(mortgage: Mortgage) -> MortgageTerms:
        return MortgageTerms(
            mortgage_id=mortgage.id,
            monthly_payment=mortgage.monthly_payment,
            property_price=mortgage.property_price,
            down_payment=mortgage.down_payment,
            start_payment_day=mortgage.start_payment_day,
            created_at=ensure_utc(mortgage.created_at),
        )
