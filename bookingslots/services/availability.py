"""
Application services for listing slots and confirming bookings.

The service coordinates loading tenant data via a repository adapter and
delegates the actual availability calculation to the domain-level
``SlotCalculator`` and resource finder. Slot listings are advisory: a booking
is re-checked right before it is written.
"""

from __future__ import annotations

import logging
import uuid
from datetime import date as Date
from typing import Dict, List, Optional, Protocol, Sequence, Union

import pendulum
from pendulum import DateTime

from ..domain.exceptions import HoursConflictError, NotFoundError, SlotUnavailableError
from ..domain.intervals import validate_week_hours
from ..domain.models import (
    Booking,
    BookingStatus,
    DayHours,
    Employee,
    Service,
    Tenant,
    Weekday,
)
from ..domain.resource_finder import (
    find_available_resource,
    find_orphaned_bookings,
    is_resource_free,
    qualified_resources,
    resolve_effective_hours,
    total_duration,
)
from ..domain.slot_calculator import SlotCalculator
from ..domain.time_units import TimeContext, format_minutes, parse_wall_clock

logger = logging.getLogger(__name__)

DateLike = Union[Date, str]
WeekHours = Dict[Weekday, DayHours]


class BookingRepositoryProtocol(Protocol):
    """Protocol describing the persistence behaviour needed by the service."""

    async def get_tenant(self, tenant_id: str) -> Optional[Tenant]:
        """Return the tenant with its employees, services and bookings."""

    async def list_bookings(self, tenant_id: str, date: Optional[str] = None) -> List[Booking]:
        """Return the tenant's bookings, optionally for one YYYY-MM-DD day."""

    async def create_booking(self, booking: Booking) -> Booking:
        """Persist a new booking."""

    async def update_booking_status(
        self, tenant_id: str, booking_id: str, status: BookingStatus
    ) -> Booking:
        """Change the status of a booking."""

    async def delete_booking(self, tenant_id: str, booking_id: str) -> None:
        """Remove a booking."""

    async def update_employee_hours(
        self, tenant_id: str, employee_id: str, hours: WeekHours
    ) -> Employee:
        """Replace an employee's personal hours."""

    async def update_tenant_hours(self, tenant_id: str, hours: WeekHours) -> Tenant:
        """Replace the tenant's default hours."""


def parse_date(value: DateLike) -> Date:
    """Accept a date or a YYYY-MM-DD string."""
    if isinstance(value, str):
        return pendulum.from_format(value, "YYYY-MM-DD").date()
    return value


class AvailabilityService:
    """
    Orchestrates tenant retrieval, slot calculation and booking confirmation.

    Dependency inversion toward a protocol makes it easy to plug in the real
    persistence adapter or the in-memory implementation in tests.
    """

    def __init__(
        self,
        repository: BookingRepositoryProtocol,
        slot_calculator: Optional[SlotCalculator] = None,
    ) -> None:
        self._repository = repository
        self._slot_calculator = slot_calculator or SlotCalculator()

    async def get_available_slots(
        self,
        *,
        tenant_id: str,
        date: DateLike,
        service_ids: Sequence[str],
        employee_id: Optional[str] = None,
        now: Optional[DateTime] = None,
    ) -> List[str]:
        """
        List start times for the requested services.

        With ``employee_id`` only that employee's schedule counts. Without it,
        the slots of every qualified employee are merged, de-duplicated and
        sorted. An existing employee who cannot perform the services gets no
        slots.

        Raises:
            NotFoundError: If the tenant, a service or the employee is unknown
        """
        day = parse_date(date)
        tenant = (await self._load_tenant(tenant_id)).without_cancelled_bookings()
        services = self._resolve_services(tenant, service_ids)
        duration = total_duration(services)

        candidates = qualified_resources(tenant, services)
        if employee_id is not None:
            self._require_employee(tenant, employee_id)
            candidates = [employee for employee in candidates if employee.id == employee_id]
            if not candidates:
                logger.debug("Employee %s cannot perform %s", employee_id, list(service_ids))
                return []

            return self._slots_for_employee(tenant, candidates[0], day, duration, now)

        merged = set()
        for employee in candidates:
            merged.update(self._slots_for_employee(tenant, employee, day, duration, now))
        return sorted(merged)

    def _slots_for_employee(
        self,
        tenant: Tenant,
        employee: Employee,
        day: Date,
        duration: int,
        now: Optional[DateTime],
    ) -> List[str]:
        weekday = Weekday.from_date(day)
        hours = resolve_effective_hours(employee, tenant.day_hours(weekday), weekday)
        if hours is None:
            return []

        date_str = day.strftime("%Y-%m-%d")
        occupied = [booking.to_occupied() for booking in tenant.bookings_for(employee.id, date_str)]

        # A tenant timezone decides what "today" means for that business
        if now is None and tenant.timezone:
            now = pendulum.now(tenant.timezone)

        return self._slot_calculator.compute_available_slots(
            date=day,
            total_duration=duration,
            day_hours=hours,
            occupied_reservations=occupied,
            midnight_mode_enabled=tenant.midnight_mode_enabled,
            now=now,
        )

    async def find_employee_for_slot(
        self,
        *,
        tenant_id: str,
        date: DateLike,
        slot: str,
        service_ids: Sequence[str],
    ) -> Optional[Employee]:
        """Return the first qualified employee free at ``slot``, or None."""
        tenant = (await self._load_tenant(tenant_id)).without_cancelled_bookings()
        services = self._resolve_services(tenant, service_ids)
        return find_available_resource(
            parse_date(date), slot, total_duration(services), services, tenant
        )

    async def confirm_booking(
        self,
        *,
        tenant_id: str,
        date: DateLike,
        slot: str,
        service_ids: Sequence[str],
        client_name: str,
        client_phone: str,
        employee_id: Optional[str] = None,
    ) -> Booking:
        """
        Re-check availability and create the booking.

        Raises:
            SlotUnavailableError: If nobody qualified is free at ``slot`` any more
            NotFoundError: If the tenant, a service or the employee is unknown
        """
        day = parse_date(date)
        tenant = (await self._load_tenant(tenant_id)).without_cancelled_bookings()
        services = self._resolve_services(tenant, service_ids)
        duration = total_duration(services)

        if employee_id is not None:
            employee = self._require_employee(tenant, employee_id)
            qualified = any(e.id == employee.id for e in qualified_resources(tenant, services))
            if not (qualified and is_resource_free(employee, tenant, day, slot, duration)):
                employee = None
        else:
            employee = find_available_resource(day, slot, duration, services, tenant)

        if employee is None:
            logger.warning(
                "Slot %s on %s is no longer available for tenant %s", slot, day, tenant_id
            )
            raise SlotUnavailableError(
                f"The slot {slot} on {day} is no longer available. Please pick another time."
            )

        start = parse_wall_clock(slot, TimeContext.OPEN)
        booking = Booking(
            id=uuid.uuid4().hex,
            tenant_id=tenant_id,
            employee_id=employee.id,
            date=day.strftime("%Y-%m-%d"),
            start=slot,
            end=format_minutes(start + duration),
            status=BookingStatus.PENDING,
            client_name=client_name,
            client_phone=client_phone,
            service_ids=tuple(service.id for service in services),
        )

        created = await self._repository.create_booking(booking)
        logger.info(
            "Created booking %s for %s at %s %s", created.id, employee.id, created.date, slot
        )
        return created

    async def cancel_booking(self, *, tenant_id: str, booking_id: str) -> Booking:
        """Mark a booking as cancelled so it frees its time range."""
        booking = await self._repository.update_booking_status(
            tenant_id, booking_id, BookingStatus.CANCELLED
        )
        logger.info("Cancelled booking %s", booking_id)
        return booking

    async def update_employee_hours(
        self,
        *,
        tenant_id: str,
        employee_id: str,
        hours: WeekHours,
        today: Optional[Date] = None,
    ) -> Employee:
        """
        Validate and save an employee's personal hours.

        Raises:
            HoursValidationError: If a day has malformed or overlapping intervals
            HoursConflictError: If upcoming bookings would fall outside the new hours
        """
        validate_week_hours(hours)
        tenant = await self._load_tenant(tenant_id)
        employee = tenant.find_employee(employee_id)
        if employee is None:
            raise NotFoundError(f"Unknown employee: {employee_id}")

        start = today or pendulum.now(self._slot_calculator.timezone).date()
        bookings = [booking for booking in tenant.bookings if booking.employee_id == employee_id]
        proposed = Employee(id=employee.id, name=employee.name, hours=hours)

        orphaned: List[Booking] = []
        for weekday in Weekday:
            effective = resolve_effective_hours(proposed, tenant.day_hours(weekday), weekday)
            orphaned.extend(
                find_orphaned_bookings(bookings, weekday, effective or DayHours.closed(), start)
            )

        self._raise_on_orphans(orphaned)
        return await self._repository.update_employee_hours(tenant_id, employee_id, hours)

    async def update_tenant_hours(
        self,
        *,
        tenant_id: str,
        hours: WeekHours,
        today: Optional[Date] = None,
    ) -> Tenant:
        """
        Validate and save the tenant's default hours.

        Employees with an enabled personal override for a day are not affected
        by the tenant hours of that day.
        """
        validate_week_hours(hours)
        tenant = await self._load_tenant(tenant_id)
        start = today or pendulum.now(self._slot_calculator.timezone).date()

        orphaned: List[Booking] = []
        for weekday in Weekday:
            following_default = []
            for booking in tenant.bookings:
                employee = tenant.find_employee(booking.employee_id)
                override = employee.hours_for(weekday) if employee else None
                if override is None or not override.enabled:
                    following_default.append(booking)

            orphaned.extend(
                find_orphaned_bookings(
                    following_default, weekday, hours.get(weekday, DayHours.closed()), start
                )
            )

        self._raise_on_orphans(orphaned)
        return await self._repository.update_tenant_hours(tenant_id, hours)

    @staticmethod
    def _raise_on_orphans(orphaned: List[Booking]) -> None:
        if not orphaned:
            return
        listing = ", ".join(f"{b.date} {b.start}-{b.end}" for b in orphaned)
        logger.warning("Hours change rejected, %d booking(s) affected", len(orphaned))
        raise HoursConflictError(
            f"The new hours leave {len(orphaned)} existing booking(s) outside working time: {listing}",
            bookings=orphaned,
        )

    async def _load_tenant(self, tenant_id: str) -> Tenant:
        tenant = await self._repository.get_tenant(tenant_id)
        if tenant is None:
            raise NotFoundError(f"Unknown tenant: {tenant_id}")
        return tenant

    @staticmethod
    def _require_employee(tenant: Tenant, employee_id: str) -> Employee:
        """Look up a bookable employee, rejecting unknown or archived ones."""
        employee = tenant.find_employee(employee_id)
        if employee is None or employee.archived:
            raise NotFoundError(f"Unknown employee: {employee_id}")
        return employee

    @staticmethod
    def _resolve_services(tenant: Tenant, service_ids: Sequence[str]) -> List[Service]:
        """Look up the requested services, rejecting unknown or archived ones."""
        services: List[Service] = []
        missing: List[str] = []

        for service_id in service_ids:
            service = tenant.find_service(service_id)
            if service is None or service.archived:
                missing.append(service_id)
                continue
            services.append(service)

        if missing:
            raise NotFoundError(f"Unknown service(s): {', '.join(missing)}")

        return services
