"""
bookingslots - appointment availability engine for multi-tenant booking.
"""

__version__ = "0.3.0"
