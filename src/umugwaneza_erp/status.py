"""Status-transition rules for balances, vehicles and rental contracts.

Three independent concerns live here:

* the read-time ``DELAYED`` overlay for open purchase and sale balances,
* the vehicle operational state machine,
* the rental contract lifecycle.

Functions are pure; the business logic layer persists whatever they return.
"""

from __future__ import annotations

from datetime import UTC, date, datetime
from typing import Any, Dict, FrozenSet, Optional, Union

from . import log
from .constants import DELAYED, OperationalStatus, RentalDirection, VehicleStatus
from .errors import StatusTransitionError, ValidationError
from .money import ZERO, to_decimal


VEHICLE_TRANSITIONS: Dict[VehicleStatus, FrozenSet[VehicleStatus]] = {
    VehicleStatus.AVAILABLE: frozenset(
        {
            VehicleStatus.RENTED_OUT,
            VehicleStatus.RENTED_IN,
            VehicleStatus.MAINTENANCE,
            VehicleStatus.OFFLINE,
        }
    ),
    VehicleStatus.RENTED_OUT: frozenset({VehicleStatus.AVAILABLE}),
    VehicleStatus.RENTED_IN: frozenset({VehicleStatus.AVAILABLE}),
    VehicleStatus.MAINTENANCE: frozenset({VehicleStatus.AVAILABLE, VehicleStatus.OFFLINE}),
    VehicleStatus.OFFLINE: frozenset({VehicleStatus.AVAILABLE, VehicleStatus.MAINTENANCE}),
}

CONTRACT_TRANSITIONS: Dict[OperationalStatus, FrozenSet[OperationalStatus]] = {
    OperationalStatus.ACTIVE: frozenset({OperationalStatus.COMPLETED, OperationalStatus.CANCELLED}),
    OperationalStatus.COMPLETED: frozenset(),
    OperationalStatus.CANCELLED: frozenset(),
}

RENTED_STATES = frozenset({VehicleStatus.RENTED_OUT, VehicleStatus.RENTED_IN})
MANUAL_STATES = frozenset({VehicleStatus.AVAILABLE, VehicleStatus.MAINTENANCE, VehicleStatus.OFFLINE})


def utc_today() -> date:
    """Current calendar date in UTC, the clock every write path stamps with."""

    return datetime.now(UTC).date()


def _as_date(value: Union[date, datetime, str, None]) -> Optional[date]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


def is_overdue(remaining: Any, due_date: Union[date, str, None], today: Union[date, datetime, None] = None) -> bool:
    """Return ``True`` when an open balance has passed its due date."""

    due = _as_date(due_date)
    if due is None or to_decimal(remaining) <= ZERO:
        return False
    current = _as_date(today) or utc_today()
    return current > due


def display_status(
    remaining: Any,
    due_date: Union[date, str, None],
    financial_status: str,
    today: Union[date, datetime, None] = None,
) -> str:
    """Overlay ``DELAYED`` on an overdue balance without touching the stored status.

    Args:
        remaining (Any): Outstanding balance of the purchase or sale.
        due_date (date | str | None): Agreed settlement date, if any.
        financial_status (str): Persisted tri-state status.
        today (date | datetime | None): Evaluation date; defaults to the
            current UTC date.

    Returns:
        str: ``"DELAYED"`` when ``remaining > 0`` and ``today`` is after
            ``due_date``; otherwise ``financial_status`` unchanged.
    """

    if is_overdue(remaining, due_date, today):
        return DELAYED
    return financial_status


def can_transition_vehicle(current: Union[VehicleStatus, str], requested: Union[VehicleStatus, str]) -> bool:
    return VehicleStatus(requested) in VEHICLE_TRANSITIONS[VehicleStatus(current)]


def vehicle_status_for_direction(direction: Union[RentalDirection, str]) -> VehicleStatus:
    """Vehicle state entered when a contract in ``direction`` starts."""

    if RentalDirection(direction) == RentalDirection.OUTGOING:
        return VehicleStatus.RENTED_OUT
    return VehicleStatus.RENTED_IN


def start_rental_status(vehicle_id: str, current: Union[VehicleStatus, str], direction: Union[RentalDirection, str]) -> VehicleStatus:
    """Return the state a vehicle moves to when a contract is created.

    Raises:
        StatusTransitionError: If the vehicle is not ``AVAILABLE``.
    """

    requested = vehicle_status_for_direction(direction)
    if VehicleStatus(current) != VehicleStatus.AVAILABLE:
        log.warning(
            "Vehicle '%s' cannot be rented while %s",
            vehicle_id,
            VehicleStatus(current).value,
        )
        raise StatusTransitionError("vehicle", vehicle_id, VehicleStatus(current).value, requested.value)
    return requested


def release_vehicle_status(current: Union[VehicleStatus, str]) -> Optional[VehicleStatus]:
    """Return ``AVAILABLE`` for a rented vehicle, ``None`` when nothing should change.

    Vehicles an owner put into ``MAINTENANCE`` or ``OFFLINE`` keep that state
    when their contract ends.
    """

    if VehicleStatus(current) in RENTED_STATES:
        return VehicleStatus.AVAILABLE
    return None


def validate_manual_status(
    vehicle_id: str,
    current: Union[VehicleStatus, str],
    requested: Union[VehicleStatus, str],
) -> VehicleStatus:
    """Check an owner-initiated vehicle status change.

    Raises:
        ValidationError: If ``requested`` is not a valid vehicle status or is
            one of the contract-driven ``RENTED_*`` states.
        StatusTransitionError: If the vehicle is currently rented.
    """

    try:
        target = VehicleStatus(requested)
    except ValueError as exc:
        raise ValidationError("current_status", "is not a vehicle status", requested) from exc
    if target not in MANUAL_STATES:
        log.warning("Rejected manual status %s for vehicle '%s'", target.value, vehicle_id)
        raise ValidationError("current_status", "rented states are set by rental contracts only", target.value)
    current_status = VehicleStatus(current)
    if current_status == target:
        return target
    if current_status not in MANUAL_STATES or not can_transition_vehicle(current_status, target):
        log.warning(
            "Rejected manual move of vehicle '%s' from %s to %s",
            vehicle_id,
            current_status.value,
            target.value,
        )
        raise StatusTransitionError("vehicle", vehicle_id, current_status.value, target.value)
    return target


def transition_contract(
    contract_id: str,
    current: Union[OperationalStatus, str],
    requested: Union[OperationalStatus, str],
) -> OperationalStatus:
    """Validate a contract lifecycle move; ``COMPLETED`` and ``CANCELLED`` are terminal.

    Raises:
        StatusTransitionError: If the move is not allowed from ``current``.
    """

    current_status = OperationalStatus(current)
    target = OperationalStatus(requested)
    if target not in CONTRACT_TRANSITIONS[current_status]:
        log.warning(
            "Rejected move of contract '%s' from %s to %s",
            contract_id,
            current_status.value,
            target.value,
        )
        raise StatusTransitionError("rental contract", contract_id, current_status.value, target.value)
    return target


__all__ = [
    "VEHICLE_TRANSITIONS",
    "CONTRACT_TRANSITIONS",
    "utc_today",
    "is_overdue",
    "display_status",
    "can_transition_vehicle",
    "vehicle_status_for_direction",
    "start_rental_status",
    "release_vehicle_status",
    "validate_manual_status",
    "transition_contract",
]
