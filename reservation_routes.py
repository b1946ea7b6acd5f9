#!/usr/bin/env python3
"""
Reservation Routes
Readiness statistics from the published reservation sheet.
"""

import logging

from fastapi import APIRouter, HTTPException, status

from database import get_database_manager, utc_now
from fleet_services.reservation_feed import ReservationFeedClient
from fleet_services.reservation_service import compute_reservation_stats

logger = logging.getLogger(__name__)

# Create router with prefix
router = APIRouter(prefix="/api/reservations", tags=["Reservations"])

# Initialize services
db_manager = get_database_manager()
feed_client = ReservationFeedClient()


@router.get("/stats")
async def get_reservation_stats():
    """
    Upcoming reservations, vehicles in use and vehicles that need an
    inspection before their next rental.
    """
    try:
        reservations = await feed_client.get_reservations()
        return compute_reservation_stats(reservations, db_manager.latest_inspection_dates, utc_now())
    except Exception as e:
        logger.error(f"Error fetching reservation stats: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch reservation stats"
        )
