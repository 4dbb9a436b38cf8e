"""
Service layer helpers that orchestrate adapters and domain logic.
"""

from .availability_service import AvailabilityService, CalendarClientProtocol

__all__ = ["AvailabilityService", "CalendarClientProtocol"]
