"""Persistence layer for vehicle loan schedules.

This module keeps each vehicle's loan terms and generated EMI schedule in a
database so payments can be recorded against it later. A schedule is
generated exactly once; recording a payment loads it, updates the single
touched entry and writes it back. It defaults to SQLite for local
development, but accepts any SQLAlchemy-compatible URL (e.g.
PostgreSQL/MySQL).
"""

from __future__ import annotations

import json
import logging
from datetime import date, datetime
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import Column, DateTime, String, Text, create_engine, select
from sqlalchemy.orm import declarative_base, sessionmaker

from fleet_calc.data_models import AmortizationEntry, LoanTerms
from fleet_calc.engine import mark_paid
from fleet_calc.serialization import (
    entry_to_dict,
    schedule_from_list,
    schedule_to_list,
    terms_from_dict,
    terms_to_dict,
)

logger = logging.getLogger(__name__)

Base = declarative_base()

DEFAULT_DATABASE_URL = "sqlite:///fleet_schedules.sqlite3"


class VehicleLoanModel(Base):
    __tablename__ = "vehicle_loans"

    vehicle_id = Column(String(64), primary_key=True)
    terms_json = Column(Text, nullable=False)
    schedule_json = Column(Text, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)


class VehicleNotFound(LookupError):
    """Raised when no loan is stored for a vehicle."""


class ScheduleStore:
    """Database-backed store of per-vehicle loan schedules."""

    def __init__(self, url: str) -> None:
        self._engine = create_engine(url, future=True)
        Base.metadata.create_all(self._engine)
        self._session_factory = sessionmaker(self._engine, expire_on_commit=False, future=True)

    def save(self, vehicle_id: str, terms: LoanTerms, schedule: List[AmortizationEntry]) -> None:
        """Store a freshly generated schedule, replacing any previous one."""
        with self._session_factory() as session:
            row = session.get(VehicleLoanModel, vehicle_id)
            if row is None:
                row = VehicleLoanModel(vehicle_id=vehicle_id)
                session.add(row)
            row.terms_json = json.dumps(terms_to_dict(terms))
            row.schedule_json = json.dumps(schedule_to_list(schedule))
            session.commit()
        logger.info("Stored %d-entry schedule for vehicle %s", len(schedule), vehicle_id)

    def load(self, vehicle_id: str) -> Tuple[LoanTerms, List[AmortizationEntry]]:
        with self._session_factory() as session:
            row = session.get(VehicleLoanModel, vehicle_id)
            if row is None:
                raise VehicleNotFound(vehicle_id)
            return self._decode(row)

    def mark_paid(self, vehicle_id: str, index: int, paid_date: date) -> AmortizationEntry:
        """Record the payment of one entry and persist only that change.

        Raises ``PaymentError`` (from the engine) for an invalid index or an
        entry that is already paid; nothing is written in that case.
        """
        with self._session_factory() as session:
            row = session.get(VehicleLoanModel, vehicle_id)
            if row is None:
                raise VehicleNotFound(vehicle_id)
            items: List[Dict[str, Any]] = json.loads(row.schedule_json)
            schedule = schedule_from_list(items)
            entry = mark_paid(schedule, index, paid_date)
            items[index] = entry_to_dict(entry)
            row.schedule_json = json.dumps(items)
            session.commit()
        logger.info("Vehicle %s: EMI month %d paid on %s", vehicle_id, entry.month, paid_date.isoformat())
        return entry

    def remove(self, vehicle_id: str) -> bool:
        with self._session_factory() as session:
            row = session.get(VehicleLoanModel, vehicle_id)
            if row is None:
                return False
            session.delete(row)
            session.commit()
        return True

    def list_vehicles(self) -> List[str]:
        with self._session_factory() as session:
            rows = session.execute(
                select(VehicleLoanModel.vehicle_id).order_by(VehicleLoanModel.vehicle_id.asc())
            ).scalars()
            return list(rows)

    @staticmethod
    def _decode(row: VehicleLoanModel) -> Tuple[LoanTerms, List[AmortizationEntry]]:
        terms = terms_from_dict(json.loads(row.terms_json))
        schedule = schedule_from_list(json.loads(row.schedule_json))
        return terms, schedule


def create_store_from_env(url: Optional[str]) -> ScheduleStore:
    return ScheduleStore(url or DEFAULT_DATABASE_URL)
