"""
Tests for the in-memory repository and its data file loading.
"""

import asyncio
import json

import pytest
from pydantic import ValidationError

from bookingslots.adapters.memory_repository import InMemoryRepository
from bookingslots.domain.exceptions import NotFoundError
from bookingslots.domain.models import BookingStatus, Interval, Weekday

DATA_YAML = """
tenants:
  - id: t1
    name: Salon
    timezone: Europe/Berlin
    hours:
      monday:
        enabled: true
        intervals:
          - open: "09:00"
            close: 18:00
      sunday:
        enabled: false
    employees:
      - id: e1
        name: Carlos
      - id: e2
        name: Lucia
        archived: true
    services:
      - id: s1
        name: Haircut
        duration: 25
        buffer: 5
        employee_ids: [e1]
    bookings:
      - id: b1
        employee_id: e1
        date: 2024-01-15
        start: "10:00:00"
        end: 10:30
        status: confirmed
        client:
          name: Ana
          phone: "+54 11 5555 0000"
        service_ids: [s1]
"""


@pytest.fixture
def data_file(tmp_path):
    path = tmp_path / "data.yaml"
    path.write_text(DATA_YAML, encoding="utf-8")
    return path


def test_load_yaml_normalizes_times_and_dates(data_file):
    """Stored HH:mm:ss, unquoted times and YAML dates end up as plain strings."""
    repository = InMemoryRepository.from_file(data_file)
    tenant = asyncio.run(repository.get_tenant("t1"))

    assert tenant.timezone == "Europe/Berlin"
    assert tenant.day_hours(Weekday.MONDAY).intervals == (Interval("09:00", "18:00"),)
    assert not tenant.day_hours(Weekday.SUNDAY).enabled
    assert tenant.find_employee("e2").archived
    assert tenant.find_service("s1").total_minutes == 30

    booking = tenant.bookings[0]
    assert booking.tenant_id == "t1"
    assert booking.date == "2024-01-15"
    assert booking.start == "10:00"
    assert booking.end == "10:30"
    assert booking.status is BookingStatus.CONFIRMED
    assert booking.client_name == "Ana"
    assert booking.service_ids == ("s1",)


def test_load_json(tmp_path):
    """JSON data files are supported too."""
    path = tmp_path / "data.json"
    path.write_text(
        json.dumps(
            {
                "tenants": [
                    {
                        "id": "t2",
                        "name": "Studio",
                        "midnight_mode_enabled": True,
                        "hours": {
                            "friday": {
                                "enabled": True,
                                "intervals": [{"open": "22:00", "close": "02:00"}],
                            }
                        },
                    }
                ]
            }
        ),
        encoding="utf-8",
    )

    repository = InMemoryRepository.from_file(path)
    tenant = asyncio.run(repository.get_tenant("t2"))

    assert repository.tenant_ids() == ["t2"]
    assert tenant.midnight_mode_enabled
    assert tenant.day_hours(Weekday.FRIDAY).intervals == (Interval("22:00", "02:00"),)


def test_missing_file(tmp_path):
    """A missing data file raises FileNotFoundError."""
    with pytest.raises(FileNotFoundError):
        InMemoryRepository.from_file(tmp_path / "nope.yaml")


def test_invalid_files(tmp_path):
    """Broken YAML, broken JSON and non-mapping roots are ValueErrors."""
    broken_yaml = tmp_path / "broken.yaml"
    broken_yaml.write_text("tenants: [unclosed", encoding="utf-8")
    broken_json = tmp_path / "broken.json"
    broken_json.write_text("{tenants", encoding="utf-8")
    a_list = tmp_path / "list.yaml"
    a_list.write_text("- one\n- two\n", encoding="utf-8")

    with pytest.raises(ValueError, match="Invalid YAML"):
        InMemoryRepository.from_file(broken_yaml)
    with pytest.raises(ValueError, match="Invalid JSON"):
        InMemoryRepository.from_file(broken_json)
    with pytest.raises(ValueError, match="mapping"):
        InMemoryRepository.from_file(a_list)


def test_negative_service_minutes_rejected(tmp_path):
    """Service durations cannot be negative."""
    path = tmp_path / "data.yaml"
    path.write_text(
        "tenants:\n  - id: t1\n    name: Salon\n    services:\n"
        "      - {id: s1, name: Bad, duration: -10}\n",
        encoding="utf-8",
    )

    with pytest.raises(ValidationError):
        InMemoryRepository.from_file(path)


def test_booking_writes(data_file):
    """Status updates, deletes and lookups by date."""
    repository = InMemoryRepository.from_file(data_file)

    updated = asyncio.run(repository.update_booking_status("t1", "b1", BookingStatus.CANCELLED))
    assert updated.status is BookingStatus.CANCELLED
    assert asyncio.run(repository.list_bookings("t1", "2024-01-15"))[0].status is BookingStatus.CANCELLED
    assert asyncio.run(repository.list_bookings("t1", "2024-01-16")) == []

    asyncio.run(repository.delete_booking("t1", "b1"))
    assert asyncio.run(repository.list_bookings("t1")) == []


def test_unknown_ids_raise_not_found(data_file):
    """Writes against unknown tenants, bookings or employees fail loudly."""
    repository = InMemoryRepository.from_file(data_file)

    assert asyncio.run(repository.get_tenant("missing")) is None
    with pytest.raises(NotFoundError):
        asyncio.run(repository.update_booking_status("t1", "missing", BookingStatus.CONFIRMED))
    with pytest.raises(NotFoundError):
        asyncio.run(repository.delete_booking("t1", "missing"))
    with pytest.raises(NotFoundError):
        asyncio.run(repository.update_employee_hours("t1", "missing", {}))
    with pytest.raises(NotFoundError):
        asyncio.run(repository.list_bookings("missing"))
