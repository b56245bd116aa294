"""Custom application exceptions."""

from decimal import Decimal
from typing import Any

from fastapi import HTTPException, status


class AppException(HTTPException):
    """Base application exception."""

    def __init__(
        self,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail: str = "An unexpected error occurred",
        headers: dict[str, str] | None = None,
    ) -> None:
        super().__init__(status_code=status_code, detail=detail, headers=headers)

    def __str__(self) -> str:
        return str(self.detail)


class ValidationError(AppException):
    """Validation error exception."""

    def __init__(self, detail: str = "Validation failed", errors: list[dict[str, Any]] | None = None) -> None:
        self.errors = errors
        super().__init__(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=detail)


class InvalidDateRange(ValidationError):
    """End date is not after start date."""

    def __init__(self, detail: str = "end_date must be after start_date") -> None:
        super().__init__(detail)


class BelowMinimumDays(ValidationError):
    """Requested range is shorter than the listing's minimum booking."""

    def __init__(self, total_days: int, minimum_days: int) -> None:
        self.total_days = total_days
        self.minimum_days = minimum_days
        super().__init__(f"Minimum booking is {minimum_days} days, requested {total_days}")


class InvalidAmount(ValidationError):
    """Negative or non-finite monetary input."""

    def __init__(self, detail: str = "Amount must be a finite, non-negative number") -> None:
        super().__init__(detail)


class NotFoundError(AppException):
    """Resource not found exception."""

    def __init__(self, resource: str = "Resource", identifier: str | None = None) -> None:
        detail = f"{resource} not found"
        if identifier:
            detail = f"{resource} with ID '{identifier}' not found"
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=detail)


class DateRangeConflict(AppException):
    """Dates not available exception."""

    def __init__(self, detail: str = "The selected dates are not available") -> None:
        super().__init__(status_code=status.HTTP_409_CONFLICT, detail=detail)


class InvalidTransition(AppException):
    """Booking status does not allow the requested operation."""

    def __init__(self, detail: str = "This operation is not allowed for the current booking status") -> None:
        super().__init__(status_code=status.HTTP_409_CONFLICT, detail=detail)


class ListingHasBookings(AppException):
    """Listing still has bookings that are not archived."""

    def __init__(self, listing_id: str, count: int) -> None:
        self.count = count
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Listing {listing_id} has {count} booking(s) that must be archived first",
        )


class LedgerMismatch(AppException):
    """Aggregated revenue disagrees with the ledger beyond tolerance."""

    def __init__(self, computed_total: Decimal, ledger_total: Decimal, tolerance: Decimal) -> None:
        self.computed_total = computed_total
        self.ledger_total = ledger_total
        self.tolerance = tolerance
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            detail=(
                f"Revenue total {computed_total} does not match ledger total "
                f"{ledger_total} (tolerance {tolerance})"
            ),
        )
