"""
Reservation sheet parsing and readiness statistics.

The reservation sheet is exported as CSV with the columns
car_num, car_name, start_at_kst, end_at_kst, state (by position). Times are
written in Korean locale format ("2026. 1. 8 오전 7:10:00") in KST.
"""

import csv
import io
import logging
import re
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Dict, Iterable, List, Optional

from database import KST, isoformat_utc, to_utc_naive

logger = logging.getLogger(__name__)

STATE_RESERVED = "예약"
STATE_IN_USE = "이용중"
STATE_COMPLETED = "완료"
STATE_CANCELLED = "취소"

PRIORITY_URGENT = "urgent"
PRIORITY_SOON = "soon"
PRIORITY_NORMAL = "normal"

KOREAN_DATETIME_PATTERN = re.compile(
    r"(\d{4})\.\s*(\d{1,2})\.\s*(\d{1,2})\.?\s*(오전|오후)\s*(\d{1,2}):(\d{2})(?::(\d{2}))?"
)

InspectionLookup = Callable[[Iterable[str]], Dict[str, Optional[datetime]]]


@dataclass
class Reservation:
    car_num: str
    car_name: str
    state: str
    start_at: Optional[datetime] = None  # naive UTC
    end_at: Optional[datetime] = None  # naive UTC


def parse_korean_datetime(value: Optional[str]) -> Optional[datetime]:
    """Parse a KST timestamp from the sheet into naive UTC.

    ISO-8601 strings are accepted as well; ones without an offset are read
    as KST. Returns None for empty or unparseable values.
    """
    if not value or not value.strip():
        return None
    text = value.strip()

    match = KOREAN_DATETIME_PATTERN.search(text)
    if match:
        year, month, day, meridiem, hour, minute, second = match.groups()
        hours = int(hour)
        if meridiem == "오후" and hours != 12:
            hours += 12
        elif meridiem == "오전" and hours == 12:
            hours = 0
        try:
            local = datetime(int(year), int(month), int(day), hours, int(minute), int(second or 0), tzinfo=KST)
        except ValueError:
            return None
        return to_utc_naive(local)

    try:
        parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=KST)
    return to_utc_naive(parsed)


def parse_reservation_csv(text: str) -> List[Reservation]:
    """Parse the exported reservation sheet; the first line is the header"""
    reader = csv.reader(io.StringIO(text.lstrip("\ufeff")))
    reservations = []

    for index, row in enumerate(reader):
        if index == 0:
            continue
        if not row or not any(cell.strip() for cell in row):
            continue
        if len(row) < 5:
            logger.debug("Skipping reservation row %d with %d columns", index + 1, len(row))
            continue

        car_num, car_name, start_at, end_at, state = (cell.strip() for cell in row[:5])
        reservations.append(Reservation(
            car_num=car_num,
            car_name=car_name,
            state=state,
            start_at=parse_korean_datetime(start_at),
            end_at=parse_korean_datetime(end_at),
        ))

    return reservations


def upcoming_reservations(reservations: List[Reservation], now: datetime, hours: int) -> List[Reservation]:
    """Reserved rentals starting between now and now + hours (inclusive)"""
    horizon = now + timedelta(hours=hours)
    return sorted(
        (
            r for r in reservations
            if r.state == STATE_RESERVED and r.start_at is not None and now <= r.start_at <= horizon
        ),
        key=lambda r: r.start_at,
    )


def is_in_use(reservation: Reservation, now: datetime) -> bool:
    if reservation.state == STATE_IN_USE:
        return True
    if reservation.state != STATE_RESERVED or reservation.start_at is None or reservation.end_at is None:
        return False
    return reservation.start_at <= now < reservation.end_at


def latest_completions(reservations: List[Reservation], now: datetime) -> Dict[str, Reservation]:
    """Latest finished reservation per plate (state 완료 and ended before now)"""
    latest: Dict[str, Reservation] = {}
    for reservation in reservations:
        if reservation.state != STATE_COMPLETED or reservation.end_at is None:
            continue
        if reservation.end_at >= now:
            continue
        current = latest.get(reservation.car_num)
        if current is None or reservation.end_at > current.end_at:
            latest[reservation.car_num] = reservation
    return latest


def compute_reservation_stats(
    reservations: List[Reservation],
    inspection_lookup: InspectionLookup,
    now: datetime,
) -> Dict:
    """Cross-reference reservations with inspection history.

    Args:
        reservations: Parsed reservation rows.
        inspection_lookup: Maps plate numbers to their latest inspection date;
            plates missing from the result are not registered.
        now: Reference time as naive UTC.
    """
    upcoming_24h = upcoming_reservations(reservations, now, 24)
    upcoming_72h = upcoming_reservations(reservations, now, 72)

    in_use_plates = {r.car_num for r in reservations if is_in_use(r, now)}

    next_start: Dict[str, datetime] = {}
    for reservation in upcoming_72h:
        next_start.setdefault(reservation.car_num, reservation.start_at)

    completions = latest_completions(reservations, now)
    latest_inspections = inspection_lookup(list(completions)) if completions else {}

    horizon_24h = now + timedelta(hours=24)
    flagged = []
    for car_num, completion in completions.items():
        registered = car_num in latest_inspections
        last_inspection = latest_inspections.get(car_num)
        if registered and last_inspection is not None and last_inspection >= completion.end_at:
            continue

        upcoming_start = next_start.get(car_num)
        if upcoming_start is None:
            priority = PRIORITY_NORMAL
        elif upcoming_start <= horizon_24h:
            priority = PRIORITY_URGENT
        else:
            priority = PRIORITY_SOON

        flagged.append({
            "carNum": car_num,
            "carName": completion.car_name,
            "registered": registered,
            "inUse": car_num in in_use_plates,
            "nextReservationStart": isoformat_utc(upcoming_start),
            "lastCompletedAt": isoformat_utc(completion.end_at),
            "lastInspectionDate": isoformat_utc(last_inspection),
            "needsInspection": True,
            "priority": priority,
            "_next_start": upcoming_start,
        })

    priority_order = {PRIORITY_URGENT: 0, PRIORITY_SOON: 1, PRIORITY_NORMAL: 2}
    flagged.sort(key=lambda v: (
        priority_order[v["priority"]],
        v["_next_start"] or datetime.max,
        v["carNum"],
    ))
    for vehicle in flagged:
        vehicle.pop("_next_start")

    return {
        "upcomingReservationsCount": len(upcoming_24h),
        "upcomingReservations72hCount": len(upcoming_72h),
        "inUseCount": len(in_use_plates),
        "needsInspectionCount": len(flagged),
        "needsInspectionBefore24hCount": sum(1 for v in flagged if v["priority"] == PRIORITY_URGENT),
        "needsInspectionBefore72hCount": sum(
            1 for v in flagged if v["priority"] in (PRIORITY_URGENT, PRIORITY_SOON)
        ),
        "vehicles": flagged,
        "generatedAt": isoformat_utc(now),
        "debug": {
            "totalReservations": len(reservations),
            "upcomingReservations": [
                {
                    "car_num": r.car_num,
                    "start_at_kst": isoformat_utc(r.start_at),
                    "state": r.state,
                }
                for r in upcoming_24h
            ],
            "completedCarNums": len(completions),
        },
    }
