"""Main API router that includes all endpoint routers."""

from fastapi import APIRouter

from adspace.api.v1 import bookings, listings, reports

api_router = APIRouter()

# Listings
api_router.include_router(listings.router, prefix="/listings", tags=["Listings"])

# Bookings
api_router.include_router(bookings.router, prefix="/bookings", tags=["Bookings"])

# Reports
api_router.include_router(reports.router, prefix="/reports", tags=["Reports"])
