"""Core exceptions, middleware and persistence guards."""

from adspace.core.exceptions import (
    AppException,
    BelowMinimumDays,
    DateRangeConflict,
    InvalidAmount,
    InvalidDateRange,
    InvalidTransition,
    LedgerMismatch,
    ListingHasBookings,
    NotFoundError,
    ValidationError,
)

__all__ = [
    "AppException",
    "BelowMinimumDays",
    "DateRangeConflict",
    "InvalidAmount",
    "InvalidDateRange",
    "InvalidTransition",
    "LedgerMismatch",
    "ListingHasBookings",
    "NotFoundError",
    "ValidationError",
]
