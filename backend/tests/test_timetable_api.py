from datetime import datetime

import pytest

from app.api.deps import get_timetable_store
from app.core.exceptions import StoreError
from app.store.memory import InMemoryTimetableStore


def slot_payload(**overrides):
    payload = {
        "year_section": "3a",
        "day": "monday",
        "slot": 1,
        "subject": "Data Structures",
        "faculty": "RSH",
        "room": "A-101",
        "type": "Theory",
    }
    payload.update(overrides)
    return payload


def test_add_slot_and_read_it_back(client, admin_headers):
    response = client.post("/api/timetable/slot", json=slot_payload(), headers=admin_headers)
    assert response.status_code == 201
    body = response.json()
    assert body["success"] is True
    assert body["data"] == {
        "section": "3A",
        "day": "MONDAY",
        "slot": 1,
        "subject": "Data Structures",
        "faculty": "RSH",
        "room": "A-101",
        "type": "THEORY",
    }

    day_view = client.get("/api/timetable/day/3A/MONDAY", headers=admin_headers)
    assert day_view.status_code == 200
    assert day_view.json()["data"]["slots"] == [
        {"slot": 1, "subject": "Data Structures", "faculty": "RSH", "room": "A-101", "type": "THEORY"}
    ]


def test_add_slot_conflicts(client, admin_headers):
    assert client.post("/api/timetable/slot", json=slot_payload(), headers=admin_headers).status_code == 201

    section_clash = client.post(
        "/api/timetable/slot",
        json=slot_payload(subject="Physics", faculty="XYZ", type="LAB"),
        headers=admin_headers,
    )
    assert section_clash.status_code == 409
    body = section_clash.json()
    assert body["success"] is False
    assert body["errors"][0]["code"] == "SECTION_CONFLICT"
    assert body["errors"][0]["details"]["with"]["faculty"] == "RSH"

    faculty_clash = client.post("/api/timetable/slot", json=slot_payload(year_section="3B"), headers=admin_headers)
    assert faculty_clash.status_code == 409
    assert faculty_clash.json()["errors"][0]["code"] == "FACULTY_CONFLICT"
    assert "3A on MONDAY at slot 1" in faculty_clash.json()["message"]


@pytest.mark.parametrize(
    "overrides",
    [{"slot": 9}, {"type": "Seminar"}, {"day": "Funday"}, {"faculty": ""}],
)
def test_add_slot_validation(client, admin_headers, overrides):
    response = client.post("/api/timetable/slot", json=slot_payload(**overrides), headers=admin_headers)
    assert response.status_code == 400
    assert response.json()["success"] is False


def test_batch_reports_committed_and_rejected(client, admin_headers):
    payload = {
        "year_section": "3A",
        "day": "TUESDAY",
        "slots": [
            {"slot": 1, "subject": "Maths", "faculty": "RSH", "room": "101", "type": "Theory"},
            {"slot": 2, "subject": "Physics Lab", "faculty": "KLM", "room": "L1", "type": "LAB"},
            {"slot": 8, "subject": "Chemistry", "faculty": "ABC", "room": "102", "type": "Theory"},
            {"slot": 2, "subject": "Maths", "faculty": "RSH", "room": "101", "type": "Theory"},
        ],
    }
    response = client.post("/api/timetable/slots/batch", json=payload, headers=admin_headers)
    assert response.status_code == 201
    body = response.json()
    assert body["success"] is True
    assert body["message"] == "Batch operation completed. 2 slots added, 2 rejected"
    assert [entry["slot"] for entry in body["data"]["added"]] == [1, 2]
    assert [item["code"] for item in body["data"]["rejected"]] == ["VALIDATION", "SECTION_CONFLICT"]
    assert len(body["errors"]) == 2


def test_batch_requires_slots(client, admin_headers):
    response = client.post(
        "/api/timetable/slots/batch",
        json={"year_section": "3A", "day": "MONDAY", "slots": []},
        headers=admin_headers,
    )
    assert response.status_code == 400


def test_update_and_delete_slot(client, admin_headers):
    client.post("/api/timetable/slot", json=slot_payload(), headers=admin_headers)

    update = client.put(
        "/api/timetable/slot",
        json={"year_section": "3A", "day": "MONDAY", "slot": 1, "room": "B-204"},
        headers=admin_headers,
    )
    assert update.status_code == 200
    assert update.json()["data"]["room"] == "B-204"

    empty = client.put(
        "/api/timetable/slot",
        json={"year_section": "3A", "day": "MONDAY", "slot": 1},
        headers=admin_headers,
    )
    assert empty.status_code == 400

    missing = client.put(
        "/api/timetable/slot",
        json={"year_section": "3A", "day": "MONDAY", "slot": 2, "room": "X"},
        headers=admin_headers,
    )
    assert missing.status_code == 404
    assert missing.json()["errors"][0]["code"] == "NOT_FOUND"

    deleted = client.delete(
        "/api/timetable/slot",
        params={"year_section": "3a", "day": "monday", "slot": 1},
        headers=admin_headers,
    )
    assert deleted.status_code == 200
    again = client.delete(
        "/api/timetable/slot",
        params={"year_section": "3A", "day": "MONDAY", "slot": 1},
        headers=admin_headers,
    )
    assert again.status_code == 404


def test_update_faculty_conflict_leaves_entry(client, admin_headers):
    client.post("/api/timetable/slot", json=slot_payload(), headers=admin_headers)
    client.post("/api/timetable/slot", json=slot_payload(year_section="3B", faculty="XYZ"), headers=admin_headers)

    response = client.put(
        "/api/timetable/slot",
        json={"year_section": "3A", "day": "MONDAY", "slot": 1, "faculty": "XYZ"},
        headers=admin_headers,
    )
    assert response.status_code == 409
    assert response.json()["errors"][0]["code"] == "FACULTY_CONFLICT"

    day_view = client.get("/api/timetable/day/3A/MONDAY", headers=admin_headers)
    assert day_view.json()["data"]["slots"][0]["faculty"] == "RSH"


def test_weekly_view_orders_days(client, admin_headers, student_headers):
    for day, slot in [("FRIDAY", 2), ("MONDAY", 3), ("MONDAY", 1), ("WEDNESDAY", 1)]:
        client.post(
            "/api/timetable/slot",
            json=slot_payload(day=day, slot=slot, faculty=f"F{day}{slot}"),
            headers=admin_headers,
        )

    response = client.get("/api/timetable/weekly/3a", headers=student_headers)
    assert response.status_code == 200
    days = response.json()["data"]["days"]
    assert list(days) == ["MONDAY", "WEDNESDAY", "FRIDAY"]
    assert [item["slot"] for item in days["MONDAY"]] == [1, 3]

    empty = client.get("/api/timetable/weekly/9Z", headers=student_headers)
    assert empty.status_code == 200
    assert empty.json()["message"] == "No timetable found for this year section"
    assert empty.json()["data"]["days"] == {}


def test_day_view_rejects_bad_day(client, student_headers):
    response = client.get("/api/timetable/day/3A/FUNDAY", headers=student_headers)
    assert response.status_code == 400


def test_faculty_roster_and_load(client, admin_headers):
    client.post("/api/timetable/slot", json=slot_payload(year_section="3B", slot=2), headers=admin_headers)
    client.post("/api/timetable/slot", json=slot_payload(year_section="3A", slot=4), headers=admin_headers)
    client.post("/api/timetable/slot", json=slot_payload(year_section="3A", day="TUESDAY"), headers=admin_headers)

    roster = client.get("/api/timetable/faculty/RSH", headers=admin_headers)
    assert roster.status_code == 200
    assert [(item["section"], item["day"], item["slot"]) for item in roster.json()["data"]] == [
        ("3A", "MONDAY", 4),
        ("3A", "TUESDAY", 1),
        ("3B", "MONDAY", 2),
    ]

    by_query = client.get("/api/timetable/faculty", params={"faculty": "RSH"}, headers=admin_headers)
    assert len(by_query.json()["data"]) == 3

    load = client.get("/api/timetable/faculty/load", params={"faculty": "RSH", "day": "monday"}, headers=admin_headers)
    assert load.status_code == 200
    data = load.json()["data"]
    assert (data["assigned"], data["remaining"], data["cap"]) == (2, 3, 5)


def test_next_class_for_student(client, admin_headers, student_headers, clock):
    client.post("/api/timetable/slot", json=slot_payload(), headers=admin_headers)
    client.post(
        "/api/timetable/slot",
        json=slot_payload(day="WEDNESDAY", slot=3),
        headers=admin_headers,
    )

    clock.now = datetime(2026, 10, 19, 8, 0)
    response = client.get("/api/timetable/next-class/3A/data structures", headers=student_headers)
    assert response.status_code == 200
    data = response.json()["data"]
    assert (data["day"], data["slot"], data["start_time"], data["is_next_week"]) == ("MONDAY", 1, "09:00", False)

    clock.now = datetime(2026, 10, 21, 12, 0)
    response = client.get("/api/timetable/next-class/3A/Data Structures", headers=student_headers)
    data = response.json()["data"]
    assert (data["day"], data["slot"], data["is_next_week"]) == ("MONDAY", 1, True)

    none = client.get("/api/timetable/next-class/3A/Chemistry", headers=student_headers)
    assert none.status_code == 200
    assert none.json()["data"] is None


def test_role_gates(client, admin_headers, student_headers):
    student_add = client.post("/api/timetable/slot", json=slot_payload(), headers=student_headers)
    assert student_add.status_code == 403
    assert student_add.json()["message"] == "Access denied. Admin privileges required."

    assert client.get("/api/timetable/faculty/RSH", headers=student_headers).status_code == 403
    assert client.get(
        "/api/timetable/faculty/load", params={"faculty": "RSH", "day": "MONDAY"}, headers=student_headers
    ).status_code == 403

    admin_next = client.get("/api/timetable/next-class/3A/Maths", headers=admin_headers)
    assert admin_next.status_code == 403

    assert client.get("/api/timetable/day/3A/MONDAY", headers=admin_headers).status_code == 200
    assert client.get("/api/timetable/day/3A/MONDAY", headers=student_headers).status_code == 200


class UnavailableStore(InMemoryTimetableStore):
    def put(self, entry, if_not_exists=False):
        raise StoreError()


@pytest.mark.parametrize("slot", [0, 8, 9])
def test_update_and_delete_reject_out_of_range_slot(client, admin_headers, slot):
    update = client.put(
        "/api/timetable/slot",
        json={"year_section": "3A", "day": "MONDAY", "slot": slot, "room": "X"},
        headers=admin_headers,
    )
    assert update.status_code == 400
    assert update.json()["errors"][0]["code"] == "VALIDATION"

    deleted = client.delete(
        "/api/timetable/slot",
        params={"year_section": "3A", "day": "MONDAY", "slot": slot},
        headers=admin_headers,
    )
    assert deleted.status_code == 400
    assert deleted.json()["errors"][0]["code"] == "VALIDATION"


def test_store_failure_returns_service_unavailable(client, admin_headers):
    client.app.dependency_overrides[get_timetable_store] = lambda: UnavailableStore()

    response = client.post("/api/timetable/slot", json=slot_payload(), headers=admin_headers)
    assert response.status_code == 503
    body = response.json()
    assert body["success"] is False
    assert body["errors"][0]["code"] == "STORE_ERROR"


def test_day_view_normalises_day(client, admin_headers, student_headers):
    client.post("/api/timetable/slot", json=slot_payload(), headers=admin_headers)

    response = client.get("/api/timetable/day/3a/monday", headers=student_headers)
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["day"] == "MONDAY"
    assert data["year_section"] == "3A"
    assert [item["slot"] for item in data["slots"]] == [1]
