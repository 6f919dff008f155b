import uuid
from datetime import date, datetime, timezone

import pytest

from app.core.timeutils import local_today
from app.models.attendance import StaffAttendance
from app.services.attendance_service import compute_hours_worked

API = "/api/v1"


def test_full_day_in_order(client, auth, staff):
    h = auth(staff)

    r = client.post(f"{API}/attendance/check-in", headers=h)
    assert r.status_code == 200, r.text
    assert r.json()["message"] == "Entrada registrada"

    assert client.post(f"{API}/attendance/break/start", headers=h).status_code == 200
    assert client.post(f"{API}/attendance/break/end", headers=h).status_code == 200

    r = client.post(f"{API}/attendance/check-out", headers=h)
    assert r.status_code == 200
    record = r.json()["record"]
    assert record["check_out"] is not None
    assert record["hours_worked"] == pytest.approx(0.0, abs=0.01)

    today = client.get(f"{API}/attendance/today", headers=h).json()
    assert today["work_date"] == local_today().isoformat()


def test_steps_out_of_order_are_rejected(client, auth, staff):
    h = auth(staff)

    r = client.post(f"{API}/attendance/check-out", headers=h)
    assert r.status_code == 400
    assert r.json()["detail"] == "Debes marcar entrada primero"

    client.post(f"{API}/attendance/check-in", headers=h)
    assert client.post(f"{API}/attendance/check-in", headers=h).status_code == 400

    r = client.post(f"{API}/attendance/break/end", headers=h)
    assert r.json()["detail"] == "Debes iniciar el refrigerio primero"


def test_open_break_is_closed_at_check_out(client, auth, staff):
    h = auth(staff)
    client.post(f"{API}/attendance/check-in", headers=h)
    client.post(f"{API}/attendance/break/start", headers=h)

    record = client.post(f"{API}/attendance/check-out", headers=h).json()["record"]
    assert record["break_end"] is not None


def test_customers_cannot_mark_attendance(client, auth, customer):
    assert client.post(f"{API}/attendance/check-in", headers=auth(customer)).status_code == 403


def test_admin_marks_for_staff_and_reads_report(client, auth, admin, staff, customer):
    h = auth(admin)
    r = client.post(f"{API}/attendance/staff/{staff.id}/check_in", headers=h)
    assert r.status_code == 200, r.text

    r = client.post(f"{API}/attendance/staff/{customer.id}/check_in", headers=h)
    assert r.status_code == 404

    today = local_today()
    report = client.get(
        f"{API}/attendance/report",
        params={"year": today.year, "month": today.month},
        headers=h,
    ).json()
    assert len(report) == 1
    assert report[0]["staff"]["first_name"] == "Rosa"

    r = client.get(f"{API}/attendance/report", params={"year": 2026, "month": 13}, headers=h)
    assert r.status_code == 400


def test_hours_worked_subtracts_break():
    record = StaffAttendance(
        staff_id=uuid.uuid4(),
        work_date=date(2026, 3, 2),
        check_in=datetime(2026, 3, 2, 13, 0, tzinfo=timezone.utc),
        break_start=datetime(2026, 3, 2, 17, 0, tzinfo=timezone.utc),
        break_end=datetime(2026, 3, 2, 17, 45, tzinfo=timezone.utc),
        check_out=datetime(2026, 3, 2, 22, 0),
    )
    assert compute_hours_worked(record) == pytest.approx(8.25)
