"""Booking number generation."""

import random
import string
from collections.abc import Awaitable, Callable


async def generate_booking_number(exists: Callable[[str], Awaitable[bool]]) -> str:
    """Generate a unique booking number in format ADS-XXXXXX.

    Args:
        exists: Async predicate telling whether a number is already taken

    Returns:
        str: Unique booking number like 'ADS-A3B7K9'
    """
    while True:
        # Generate 6 alphanumeric characters (uppercase + digits)
        chars = string.ascii_uppercase + string.digits
        random_part = "".join(random.choices(chars, k=6))
        booking_number = f"ADS-{random_part}"

        # Check uniqueness
        if not await exists(booking_number):
            return booking_number
