"""Where clients live - rentals, owned property, and the listings behind them"""

import logging
from decimal import Decimal
from typing import List, Optional

from sqlalchemy.orm import Session

from banksim.config import Settings
from banksim.domain.calendar import whole_day
from banksim.domain.exceptions import NotFoundError, ValidationError
from banksim.domain.models import LivingType
from banksim.infrastructure.database.models import Client, ClientLiving, Property, Rental
from banksim.infrastructure.database.repositories import (
    ClientLivingRepository,
    PropertyRepository,
    RentalRepository,
)
from banksim.services.clients import ClientService
from banksim.services.obligations import MandatorySpendService
from banksim.utils.clock import Clock
from banksim.utils.money import ZERO


class LivingService:
    def __init__(self, db: Session, clock: Optional[Clock] = None, config: Optional[Settings] = None):
        self.db = db
        self.client_service = ClientService(db, clock, config)
        self.clock = self.client_service.clock
        self.settings = self.client_service.settings
        self.livings = ClientLivingRepository(db)
        self.rentals = RentalRepository(db)
        self.properties = PropertyRepository(db)
        self.mandatory = MandatorySpendService(db)

    def create_rental(self, name: str, monthly_rent: Decimal, bedrooms: Optional[int] = None, location: Optional[str] = None) -> Rental:
        if not name or not name.strip():
            raise ValidationError("Rental name required")
        if monthly_rent is None or monthly_rent <= 0:
            raise ValidationError("Monthly rent must be positive")
        return self.rentals.create(name.strip(), monthly_rent, bedrooms, location)

    def list_rentals(self) -> List[Rental]:
        return self.db.query(Rental).filter(Rental.status == "ACTIVE").order_by(Rental.id.asc()).all()

    def create_property(self, owner_id: str, slot_id: int, name: str, price: Decimal) -> Property:
        if not name or not name.strip():
            raise ValidationError("Property name required")
        if price is None or price <= 0:
            raise ValidationError("Property price must be positive")
        self.client_service.simulation.require_state(owner_id, slot_id)
        return self.properties.create(slot_id, name.strip(), price)

    def get_living(self, owner_id: str, slot_id: int, client_id: int) -> ClientLiving:
        client = self.client_service.get_client(owner_id, slot_id, client_id)
        living = self.livings.get_by_client(client.id)
        if living is None:
            raise NotFoundError("Living selection not set")
        return living

    def assign_rental(self, owner_id: str, slot_id: int, client_id: int, rental_id: int) -> ClientLiving:
        """Move a client into a rental; first rent falls due one repayment period from today"""
        client, state = self.client_service.load(owner_id, slot_id, client_id, for_update=True)
        rental = self.rentals.get(rental_id)
        if rental is None:
            raise NotFoundError("Rental not found")

        living = self.livings.get_or_new(client)
        living.living_type = LivingType.RENTAL
        living.rental = rental
        living.property = None
        living.monthly_rent_cache = rental.monthly_rent
        living.next_rent_day = whole_day(state.game_day) + self.settings.repayment_period_days
        return self._finish(client, living)

    def assign_owned_property(self, owner_id: str, slot_id: int, client_id: int, property_id: int) -> ClientLiving:
        client, _ = self.client_service.load(owner_id, slot_id, client_id, for_update=True)
        prop = self.properties.get(property_id, slot_id)
        if prop is None:
            raise NotFoundError("Property not found")

        living = self.livings.get_or_new(client)
        living.living_type = LivingType.OWNED_PROPERTY
        living.property = prop
        living.rental = None
        living.monthly_rent_cache = ZERO
        living.next_rent_day = None
        return self._finish(client, living)

    def clear_living(self, owner_id: str, slot_id: int, client_id: int) -> ClientLiving:
        client, _ = self.client_service.load(owner_id, slot_id, client_id, for_update=True)

        living = self.livings.get_or_new(client)
        living.living_type = LivingType.NONE
        living.rental = None
        living.property = None
        living.monthly_rent_cache = ZERO
        living.next_rent_day = None
        return self._finish(client, living)

    def _finish(self, client: Client, living: ClientLiving) -> ClientLiving:
        living.start_date = self.clock.now()
        living.delinquent = False
        self.livings.save(living)
        self.mandatory.recalc(client)

        logging.info(
            "Living updated",
            extra={
                "client_id": client.id,
                "slot_id": client.slot_id,
                "living_type": living.living_type.value,
                "next_rent_day": living.next_rent_day,
            },
        )
        return living
