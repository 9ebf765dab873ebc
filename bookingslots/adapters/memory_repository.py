"""
In-memory booking repository for local use and tests.

Tenant data can be loaded from a JSON or YAML data file. This adapter stands
in for the remote data store; it implements ``BookingRepositoryProtocol``.
"""

import json
import logging
from dataclasses import replace
from datetime import date as Date
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from pydantic import BaseModel, Field, field_validator

from ..domain.exceptions import NotFoundError
from ..domain.models import (
    Booking,
    BookingStatus,
    DayHours,
    Employee,
    Interval,
    Service,
    Tenant,
    Weekday,
)
from ..domain.time_units import format_minutes, normalize_time_string

logger = logging.getLogger(__name__)


def _coerce_time(value: Any) -> Any:
    # YAML reads unquoted 10:00 as the base-60 integer 600
    if isinstance(value, int) and not isinstance(value, bool):
        return format_minutes(value)
    if isinstance(value, str):
        return normalize_time_string(value)
    return value


class IntervalRecord(BaseModel):
    open: str
    close: str

    @field_validator("open", "close", mode="before")
    @classmethod
    def normalize_time(cls, v: Any) -> Any:
        return _coerce_time(v)


class DayHoursRecord(BaseModel):
    enabled: bool = False
    intervals: List[IntervalRecord] = Field(default_factory=list)

    def to_domain(self) -> DayHours:
        return DayHours(
            enabled=self.enabled,
            intervals=[Interval(open=i.open, close=i.close) for i in self.intervals],
        )


def _hours_to_domain(records: Dict[Weekday, DayHoursRecord]) -> Dict[Weekday, DayHours]:
    return {day: record.to_domain() for day, record in records.items()}


class EmployeeRecord(BaseModel):
    id: str
    name: str
    hours: Dict[Weekday, DayHoursRecord] = Field(default_factory=dict)
    archived: bool = False

    def to_domain(self) -> Employee:
        return Employee(
            id=self.id,
            name=self.name,
            hours=_hours_to_domain(self.hours),
            archived=self.archived,
        )


class ServiceRecord(BaseModel):
    id: str
    name: str
    duration: int
    buffer: int = 0
    employee_ids: List[str] = Field(default_factory=list)
    archived: bool = False

    @field_validator("duration", "buffer")
    @classmethod
    def validate_minutes(cls, v: int) -> int:
        if v < 0:
            raise ValueError(f"Service minutes cannot be negative, got {v}")
        return v

    def to_domain(self) -> Service:
        return Service(
            id=self.id,
            name=self.name,
            duration=self.duration,
            buffer=self.buffer,
            employee_ids=self.employee_ids,
            archived=self.archived,
        )


class ClientRecord(BaseModel):
    name: str = ""
    phone: str = ""


class BookingRecord(BaseModel):
    id: str
    employee_id: str
    date: str
    start: str
    end: str
    status: BookingStatus = BookingStatus.PENDING
    client: ClientRecord = Field(default_factory=ClientRecord)
    service_ids: List[str] = Field(default_factory=list)

    @field_validator("date", mode="before")
    @classmethod
    def normalize_date(cls, v: Any) -> Any:
        # YAML turns 2024-01-15 into a date object
        if isinstance(v, Date):
            return v.isoformat()
        return v

    @field_validator("start", "end", mode="before")
    @classmethod
    def normalize_time(cls, v: Any) -> Any:
        return _coerce_time(v)

    def to_domain(self, tenant_id: str) -> Booking:
        return Booking(
            id=self.id,
            tenant_id=tenant_id,
            employee_id=self.employee_id,
            date=self.date,
            start=self.start,
            end=self.end,
            status=self.status,
            client_name=self.client.name,
            client_phone=self.client.phone,
            service_ids=self.service_ids,
        )


class TenantRecord(BaseModel):
    id: str
    name: str
    timezone: Optional[str] = None
    midnight_mode_enabled: bool = False
    hours: Dict[Weekday, DayHoursRecord] = Field(default_factory=dict)
    employees: List[EmployeeRecord] = Field(default_factory=list)
    services: List[ServiceRecord] = Field(default_factory=list)
    bookings: List[BookingRecord] = Field(default_factory=list)

    def to_domain(self) -> Tenant:
        return Tenant(
            id=self.id,
            name=self.name,
            hours=_hours_to_domain(self.hours),
            employees=[e.to_domain() for e in self.employees],
            services=[s.to_domain() for s in self.services],
            bookings=[b.to_domain(self.id) for b in self.bookings],
            midnight_mode_enabled=self.midnight_mode_enabled,
            timezone=self.timezone,
        )


class DataFile(BaseModel):
    """Root of a tenant data file."""
    tenants: List[TenantRecord] = Field(default_factory=list)


class InMemoryRepository:
    """
    Repository keeping tenants in a dict.

    Every write replaces the stored (immutable) tenant with an updated copy.
    """

    def __init__(self, tenants: Optional[List[Tenant]] = None):
        self._tenants: Dict[str, Tenant] = {}
        for tenant in tenants or []:
            self.add_tenant(tenant)

    @classmethod
    def from_file(cls, data_path: Path) -> "InMemoryRepository":
        """
        Load tenants from a JSON or YAML data file.

        Raises:
            FileNotFoundError: If the data file doesn't exist
            ValueError: If the file cannot be parsed or fails validation
        """
        if not data_path.exists():
            raise FileNotFoundError(f"Data file not found: {data_path}")

        with open(data_path, "r", encoding="utf-8") as f:
            if data_path.suffix.lower() == ".json":
                try:
                    raw = json.load(f)
                except json.JSONDecodeError as exc:
                    raise ValueError(f"Invalid JSON in {data_path}: {exc}") from exc
            else:
                try:
                    raw = yaml.safe_load(f) or {}
                except yaml.YAMLError as exc:
                    raise ValueError(f"Invalid YAML in {data_path}: {exc}") from exc

        if not isinstance(raw, dict):
            raise ValueError("Data file must contain a mapping at the root level.")

        data = DataFile(**raw)
        logger.debug("Loaded %d tenant(s) from %s", len(data.tenants), data_path)
        return cls([record.to_domain() for record in data.tenants])

    def add_tenant(self, tenant: Tenant) -> None:
        self._tenants[tenant.id] = tenant

    def tenant_ids(self) -> List[str]:
        return list(self._tenants)

    async def get_tenant(self, tenant_id: str) -> Optional[Tenant]:
        return self._tenants.get(tenant_id)

    async def list_bookings(self, tenant_id: str, date: Optional[str] = None) -> List[Booking]:
        tenant = self._require_tenant(tenant_id)
        return [b for b in tenant.bookings if date is None or b.date == date]

    async def create_booking(self, booking: Booking) -> Booking:
        tenant = self._require_tenant(booking.tenant_id)
        self._tenants[tenant.id] = replace(tenant, bookings=tenant.bookings + (booking,))
        return booking

    async def update_booking_status(
        self, tenant_id: str, booking_id: str, status: BookingStatus
    ) -> Booking:
        tenant = self._require_tenant(tenant_id)
        updated: Optional[Booking] = None
        bookings = []
        for booking in tenant.bookings:
            if booking.id == booking_id:
                booking = updated = replace(booking, status=status)
            bookings.append(booking)

        if updated is None:
            raise NotFoundError(f"Unknown booking: {booking_id}")

        self._tenants[tenant_id] = replace(tenant, bookings=bookings)
        return updated

    async def delete_booking(self, tenant_id: str, booking_id: str) -> None:
        tenant = self._require_tenant(tenant_id)
        remaining = [b for b in tenant.bookings if b.id != booking_id]
        if len(remaining) == len(tenant.bookings):
            raise NotFoundError(f"Unknown booking: {booking_id}")
        self._tenants[tenant_id] = replace(tenant, bookings=remaining)

    async def update_employee_hours(
        self, tenant_id: str, employee_id: str, hours: Dict[Weekday, DayHours]
    ) -> Employee:
        tenant = self._require_tenant(tenant_id)
        if tenant.find_employee(employee_id) is None:
            raise NotFoundError(f"Unknown employee: {employee_id}")

        employees = [
            replace(e, hours=dict(hours)) if e.id == employee_id else e
            for e in tenant.employees
        ]
        self._tenants[tenant_id] = replace(tenant, employees=employees)
        return self._tenants[tenant_id].find_employee(employee_id)

    async def update_tenant_hours(
        self, tenant_id: str, hours: Dict[Weekday, DayHours]
    ) -> Tenant:
        tenant = self._require_tenant(tenant_id)
        self._tenants[tenant_id] = replace(tenant, hours=dict(hours))
        return self._tenants[tenant_id]

    def _require_tenant(self, tenant_id: str) -> Tenant:
        tenant = self._tenants.get(tenant_id)
        if tenant is None:
            raise NotFoundError(f"Unknown tenant: {tenant_id}")
        return tenant
