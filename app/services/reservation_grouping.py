# app/services/reservation_grouping.py
"""
Computed reservation baskets.

Several products booked by one customer for the same date and time are
stored as independent reservation rows. Every read path that shows
reservations to a person folds them back together through
`group_reservations`, so the admin list and the customer's tracking page
always agree on what a "reservation" is.
"""
import uuid
from collections.abc import Callable, Hashable, Iterable
from datetime import date
from typing import TypeVar

from app.models.product import Product
from app.models.reservation import Reservation
from app.models.user import User
from app.schemas.reservation import ReservationGroup, ReservationGroupItem
from app.services.snapshots import customer_snapshot, product_snapshot

T = TypeVar("T")
K = TypeVar("K", bound=Hashable)

GroupKey = tuple[uuid.UUID, date, str]


def group_by_composite_key(
    rows: Iterable[T],
    key_fn: Callable[[T], K],
) -> list[tuple[K, list[T]]]:
    """
    Partition rows by key_fn.

    Keys come out in the order they were first seen and rows keep their
    input order inside each group. Nothing is re-sorted.
    """
    groups: dict[K, list[T]] = {}
    for row in rows:
        groups.setdefault(key_fn(row), []).append(row)
    return list(groups.items())


def reservation_key(reservation: Reservation) -> GroupKey:
    return (
        reservation.customer_id,
        reservation.reservation_date,
        reservation.reservation_time,
    )


def group_reservations(
    rows: Iterable[tuple[Reservation, Product, User]],
) -> list[ReservationGroup]:
    """
    Fold (reservation, product, customer) rows into baskets keyed by
    (customer_id, reservation_date, reservation_time).

    The basket takes id, status and created_at from its first row.
    """
    grouped = group_by_composite_key(rows, lambda row: reservation_key(row[0]))

    result: list[ReservationGroup] = []
    for _, members in grouped:
        first, _, customer = members[0]
        items = [
            ReservationGroupItem(
                id=r.id,
                product_id=r.product_id,
                size_id=r.size_id,
                quantity=r.quantity,
                special_requests=r.special_requests,
                total_amount=r.total_amount,
                product=product_snapshot(p),
            )
            for r, p, _ in members
        ]
        result.append(
            ReservationGroup(
                id=first.id,
                customer_id=first.customer_id,
                customer=customer_snapshot(customer),
                reservation_date=first.reservation_date,
                reservation_time=first.reservation_time,
                status=first.status,
                created_at=first.created_at,
                items=items,
                total_amount_combined=sum(i.total_amount for i in items),
            )
        )
    return result
