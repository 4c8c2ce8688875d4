"""Mandatory monthly spend - cached per client, persisted only on change"""

import logging
from decimal import Decimal

from sqlalchemy.orm import Session

from banksim.domain.models import LivingType, PropertyStatus
from banksim.domain.obligations import loan_counts, mortgage_counts, total_mandatory
from banksim.infrastructure.database.models import Client, Mortgage
from banksim.infrastructure.database.repositories import ClientRepository


class MandatorySpendService:
    def __init__(self, db: Session):
        self.db = db
        self.clients = ClientRepository(db)

    def recalc(self, client: Client) -> Decimal:
        """
        Sum of approved loan payments, accepted mortgages on owned and not yet
        paid-off property, and current rent.

        Writes the client only when the total differs from the cached value,
        so repeated calls with unchanged data are free.
        """
        payments = [loan.monthly_payment for loan in client.loans if loan_counts(loan.status, loan.monthly_payment)]
        payments.extend(
            mortgage.monthly_payment
            for mortgage in client.mortgages
            if mortgage_counts(
                mortgage.status,
                mortgage.monthly_payment,
                self._owns_property(client, mortgage),
                mortgage.total_paid,
                mortgage.property_price,
            )
        )
        living = client.living
        if living is not None and living.living_type == LivingType.RENTAL:
            payments.append(living.monthly_rent_cache)

        total = total_mandatory(payments)
        if client.monthly_mandatory_cache != total:
            client.monthly_mandatory_cache = total
            self.clients.save(client)
            logging.info(
                "Mandatory spend updated",
                extra={"client_id": client.id, "slot_id": client.slot_id, "step": "mandatory_spend", "total": str(total)},
            )
        return total

    @staticmethod
    def _owns_property(client: Client, mortgage: Mortgage) -> bool:
        prop = mortgage.property
        return prop is not None and prop.owner_client_id == client.id and prop.status == PropertyStatus.OWNED
