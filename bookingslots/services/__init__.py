"""
Service layer helpers that orchestrate adapters and domain logic.
"""

from .availability import AvailabilityService, BookingRepositoryProtocol

__all__ = ["AvailabilityService", "BookingRepositoryProtocol"]
