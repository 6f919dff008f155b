# app/services/status_rules.py
from fastapi import HTTPException, status

# Fulfilment chain shared by orders and reservations. A status may move to
# any later step of the chain (pickup orders skip "on_the_way").
FULFILMENT_CHAIN = ["pending", "confirmed", "preparing", "on_the_way", "completed"]

TERMINAL_ORDER_STATUSES = {"completed", "cancelled"}
TERMINAL_RESERVATION_STATUSES = {"completed", "cancelled", "no_show"}


def _forward_table(terminal: set[str]) -> dict[str, set[str]]:
    table: dict[str, set[str]] = {}
    for idx, current in enumerate(FULFILMENT_CHAIN):
        table[current] = set(FULFILMENT_CHAIN[idx + 1 :])
        if current not in terminal:
            table[current].add("cancelled")
    for final in terminal:
        table[final] = set()
    return table


ORDER_TRANSITIONS: dict[str, set[str]] = _forward_table(TERMINAL_ORDER_STATUSES)

RESERVATION_TRANSITIONS: dict[str, set[str]] = _forward_table(
    TERMINAL_RESERVATION_STATUSES
)
RESERVATION_TRANSITIONS["pending"].add("no_show")
RESERVATION_TRANSITIONS["confirmed"].add("no_show")


def ensure_transition(
    table: dict[str, set[str]],
    current: str,
    new: str,
) -> None:
    """
    Raise 400 unless `current -> new` is listed in `table`.
    Re-setting the current status is the caller's decision and is not
    checked here.
    """
    if current not in table or new not in table[current]:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Transición de estado inválida: {current} -> {new}",
        )
