from datetime import date, timedelta

from labsync.api.routes import versions as version_routes

BASE = "/api/timetable"


def create_version(client, headers, name="Autumn", effective_from="2026-01-01", **extra):
    response = client.post(
        f"{BASE}/versions",
        headers=headers,
        json={"versionName": name, "effectiveFrom": effective_from, **extra},
    )
    assert response.status_code == 201, response.text
    return response.json()


def put_periods(client, headers, version_id):
    generated = client.post(
        f"{BASE}/config/generate-periods",
        headers=headers,
        json={
            "schoolStartTime": "09:00",
            "schoolEndTime": "12:15",
            "lectureDurationMinutes": 90,
            "breakConfigurations": [{"afterLecture": 1, "durationMinutes": 15}],
        },
    )
    assert generated.status_code == 200, generated.text
    response = client.put(
        f"{BASE}/versions/{version_id}/periods",
        headers=headers,
        json={"periods": generated.json()["periods"]},
    )
    assert response.status_code == 200, response.text
    return response.json()


def test_timetable_routes_require_authentication(client):
    response = client.get(f"{BASE}/versions")

    assert response.status_code == 401
    assert response.headers["WWW-Authenticate"] == "Bearer"


def test_version_mutations_are_admin_only(client, auth_headers):
    for role in ("instructor", "student"):
        response = client.post(
            f"{BASE}/versions",
            headers=auth_headers(role),
            json={"versionName": "Rogue", "effectiveFrom": "2026-01-01"},
        )
        assert response.status_code == 403

    assert client.get(f"{BASE}/versions", headers=auth_headers("student")).status_code == 200


def test_version_lifecycle(client, auth_headers):
    admin = auth_headers("admin")
    created = create_version(client, admin)
    version = created["version"]
    assert version["versionNumber"] == 1
    assert version["isActive"] is False
    assert created["migration"]["periodsCreated"] == 0

    periods = put_periods(client, admin, version["id"])
    assert [(p["periodNumber"], p["startTime"], p["isBreak"]) for p in periods] == [
        (1, "09:00:00", False),
        (2, "10:30:00", True),
        (3, "10:45:00", False),
    ]

    activated = client.post(f"{BASE}/versions/{version['id']}/activate", headers=admin, json={"effectiveDate": "2026-01-01"})
    assert activated.status_code == 200, activated.text
    assert activated.json()["activatedVersion"]["isActive"] is True

    active = client.get(f"{BASE}/versions/active", headers=admin, params={"date": "2026-02-01"})
    assert active.status_code == 200
    assert active.json()["id"] == version["id"]

    missing = client.get(f"{BASE}/versions/active", headers=admin, params={"date": "2025-01-01"})
    assert missing.status_code == 404

    detail = client.get(f"{BASE}/versions/{version['id']}", headers=admin)
    assert detail.status_code == 200
    assert detail.json()["periodCount"] == 3

    report = client.get(f"{BASE}/versions/{version['id']}/validate", headers=admin)
    assert report.status_code == 200
    assert report.json()["isValid"] is True
    assert report.json()["issues"] == []


def test_copying_version_migrates_future_bookings(client, auth_headers):
    admin = auth_headers("admin")
    source = create_version(client, admin)["version"]
    periods = put_periods(client, admin, source["id"])
    booking_day = date.today() + timedelta(days=60)

    booked = client.post(
        f"{BASE}/schedules",
        headers=admin,
        json={
            "sessionTitle": "Physics Lab",
            "scheduleDate": booking_day.isoformat(),
            "periodId": periods[0]["id"],
            "versionId": source["id"],
            "labId": "lab-1",
        },
    )
    assert booked.status_code == 201, booked.text

    created = create_version(
        client,
        admin,
        name="Next term",
        effective_from=(date.today() + timedelta(days=30)).isoformat(),
        copyFromVersion=source["id"],
        copySchedules=True,
    )
    assert created["migration"]["periodsCreated"] == 3
    assert created["migration"]["schedulesMigrated"] == 1
    assert created["migration"]["unmappedSchedules"] == []

    original = client.get(f"{BASE}/schedules/{booked.json()['schedule']['id']}", headers=admin).json()
    assert original["status"] == "migrated"
    assert original["notes"] == "[Migrated to timetable version 2]"

    comparison = client.get(
        f"{BASE}/versions/compare",
        headers=admin,
        params={"from": source["id"], "to": created["version"]["id"]},
    )
    assert comparison.status_code == 200
    assert comparison.json()["periodsChanged"] == 0
    assert comparison.json()["toScheduleCount"] == 1


def test_create_version_validation_errors(client, auth_headers):
    admin = auth_headers("admin")
    missing_source = client.post(
        f"{BASE}/versions",
        headers=admin,
        json={"versionName": "Copy", "effectiveFrom": "2026-01-01", "copyFromVersion": "missing"},
    )
    assert missing_source.status_code == 404
    assert missing_source.json()["message"] == "TimetableVersion with id missing not found"

    bad_date = client.post(f"{BASE}/versions", headers=admin, json={"versionName": "Bad", "effectiveFrom": "someday"})
    assert bad_date.status_code == 422


def test_schedule_conflicts_are_advisory(client, auth_headers):
    admin = auth_headers("admin")
    version = create_version(client, admin)["version"]
    periods = put_periods(client, admin, version["id"])
    payload = {
        "sessionTitle": "Chemistry Lab",
        "scheduleDate": "2026-03-02",
        "periodId": periods[0]["id"],
        "labId": "lab-1",
        "instructorId": "ins-1",
    }

    first = client.post(f"{BASE}/schedules", headers=auth_headers("instructor"), json=payload)
    second = client.post(f"{BASE}/schedules", headers=admin, json={**payload, "sessionTitle": "Biology Lab"})

    assert first.status_code == 201, first.text
    assert first.json()["conflicts"] == []
    assert first.json()["schedule"]["sessionType"] == "lecture"
    assert first.json()["schedule"]["colorCode"] == "#3B82F6"
    assert first.json()["schedule"]["versionId"] == version["id"]
    assert second.status_code == 201, second.text
    types = sorted(item["conflictType"] for item in second.json()["conflicts"])
    assert types == ["instructor_double_booked", "lab_double_booked"]

    again = client.get(f"{BASE}/schedules/{first.json()['schedule']['id']}/conflicts", headers=admin)
    assert again.status_code == 200
    assert len(again.json()) == 2


def test_schedule_without_version_needs_an_effective_version(client, auth_headers):
    admin = auth_headers("admin")
    version = create_version(client, admin, effective_from="2026-01-01")["version"]
    periods = put_periods(client, admin, version["id"])

    response = client.post(
        f"{BASE}/schedules",
        headers=admin,
        json={"sessionTitle": "Early", "scheduleDate": "2025-06-01", "periodId": periods[0]["id"]},
    )

    assert response.status_code == 400
    assert response.json()["message"] == "No active timetable version found for the specified date"


def test_schedule_update_and_delete(client, auth_headers):
    admin = auth_headers("admin")
    version = create_version(client, admin)["version"]
    periods = put_periods(client, admin, version["id"])
    created = client.post(
        f"{BASE}/schedules",
        headers=admin,
        json={"sessionTitle": "Robotics", "scheduleDate": "2026-03-02", "periodId": periods[2]["id"]},
    ).json()["schedule"]

    student = client.put(f"{BASE}/schedules/{created['id']}", headers=auth_headers("student"), json={"notes": "x"})
    assert student.status_code == 403

    empty = client.put(f"{BASE}/schedules/{created['id']}", headers=admin, json={"unknownField": 1})
    assert empty.status_code == 400
    assert empty.json()["message"] == "No valid fields to update"

    updated = client.put(
        f"{BASE}/schedules/{created['id']}",
        headers=admin,
        json={"status": "completed", "roomName": "Lab 4"},
    )
    assert updated.status_code == 200, updated.text
    assert updated.json()["schedule"]["status"] == "completed"
    assert updated.json()["schedule"]["roomName"] == "Lab 4"

    assert client.put(f"{BASE}/schedules/missing", headers=admin, json={"notes": "x"}).status_code == 404

    deleted = client.delete(f"{BASE}/schedules/{created['id']}", headers=admin)
    assert deleted.status_code == 200
    assert client.get(f"{BASE}/schedules/{created['id']}", headers=admin).status_code == 404


def test_schedule_listing_and_stats(client, auth_headers):
    admin = auth_headers("admin")
    version = create_version(client, admin)["version"]
    periods = put_periods(client, admin, version["id"])
    for period_index, lab in ((2, "lab-1"), (0, "lab-1"), (0, "lab-2")):
        response = client.post(
            f"{BASE}/schedules",
            headers=admin,
            json={
                "sessionTitle": f"Session {period_index}",
                "scheduleDate": "2026-03-02",
                "periodId": periods[period_index]["id"],
                "labId": lab,
                "sessionType": "practical" if lab == "lab-2" else "lecture",
            },
        )
        assert response.status_code == 201, response.text

    listed = client.get(f"{BASE}/schedules", headers=admin, params={"labId": "lab-1"})
    assert listed.status_code == 200
    assert [item["periodNumber"] for item in listed.json()] == [1, 3]
    assert listed.json()[0]["versionNumber"] == 1

    by_version = client.get(f"{BASE}/versions/{version['id']}/schedules", headers=admin)
    assert len(by_version.json()) == 3

    stats = client.get(f"{BASE}/stats", headers=auth_headers("student"))
    assert stats.status_code == 200
    body = stats.json()
    assert body["totalSchedules"] == 3
    assert body["scheduledSessions"] == 3
    assert body["uniqueLabs"] == 2
    assert body["sessionTypes"] == {"lecture": 2, "practical": 1}


def test_timetable_config_defaults_and_update(client, auth_headers):
    admin = auth_headers("admin")
    defaults = client.get(f"{BASE}/config", headers=auth_headers("student"))
    assert defaults.status_code == 200
    assert defaults.json()["lectureDurationMinutes"] == 45
    assert defaults.json()["workingDays"][-1] == "saturday"

    assert client.put(f"{BASE}/config", headers=admin, json={}).status_code == 400
    bad_range = client.put(f"{BASE}/config", headers=admin, json={"endTime": "07:00"})
    assert bad_range.status_code == 400
    assert bad_range.json()["details"] == {"field": "endTime"}
    assert client.put(f"{BASE}/config", headers=admin, json={"startTime": "25:00"}).status_code == 422

    updated = client.put(
        f"{BASE}/config",
        headers=admin,
        json={"lectureDurationMinutes": 50, "workingDays": ["Monday", "tuesday"]},
    )
    assert updated.status_code == 200, updated.text
    assert updated.json()["lectureDurationMinutes"] == 50
    assert updated.json()["workingDays"] == ["monday", "tuesday"]
    assert updated.json()["startTime"] == "08:00:00"


def test_generate_periods_rejects_inverted_range(client, auth_headers):
    response = client.post(
        f"{BASE}/config/generate-periods",
        headers=auth_headers("admin"),
        json={"schoolStartTime": "12:00", "schoolEndTime": "09:00", "lectureDurationMinutes": 45},
    )

    assert response.status_code == 400
    assert response.json()["details"] == {"field": "schoolEndTime"}


def test_archive_defaults_to_retention_window(client, auth_headers):
    response = client.post(f"{BASE}/versions/archive", headers=auth_headers("admin"))

    assert response.status_code == 200
    assert response.json()["archivedCount"] == 0


def test_schedule_period_must_belong_to_version(client, auth_headers):
    admin = auth_headers("admin")
    autumn = create_version(client, admin)["version"]
    spring = create_version(client, admin, name="Spring", effective_from="2026-06-01")["version"]
    autumn_periods = put_periods(client, admin, autumn["id"])

    response = client.post(
        f"{BASE}/schedules",
        headers=admin,
        json={
            "sessionTitle": "Mismatch",
            "scheduleDate": "2026-06-02",
            "periodId": autumn_periods[0]["id"],
            "versionId": spring["id"],
        },
    )
    assert response.status_code == 400
    assert response.json()["details"] == {"field": "periodId"}

    unknown = client.post(
        f"{BASE}/schedules",
        headers=admin,
        json={"sessionTitle": "Ghost", "scheduleDate": "2026-06-02", "periodId": "missing"},
    )
    assert unknown.status_code == 404


def test_archive_with_negative_retention_is_a_configuration_error(client, auth_headers, monkeypatch):
    monkeypatch.setattr(version_routes.settings, "archive_retention_days", -1)
    response = client.post(f"{BASE}/versions/archive", headers=auth_headers("admin"))

    assert response.status_code == 500
    assert response.json()["message"] == "archive_retention_days must not be negative"


def test_period_display_order_follows_start_time(client, auth_headers):
    admin = auth_headers("admin")
    version = create_version(client, admin)["version"]
    out_of_order = [
        {"periodNumber": 3, "periodName": "Lecture 2", "startTime": "10:00", "endTime": "11:00"},
        {"periodNumber": 1, "periodName": "Lecture 1", "startTime": "09:00", "endTime": "10:00"},
    ]

    stored = client.put(f"{BASE}/versions/{version['id']}/periods", headers=admin, json={"periods": out_of_order})
    assert stored.status_code == 200, stored.text
    listed = client.get(f"{BASE}/versions/{version['id']}/periods", headers=admin).json()
    assert [(p["displayOrder"], p["startTime"]) for p in listed] == [(1, "09:00:00"), (2, "10:00:00")]

    reversed_order = [
        {**out_of_order[0], "displayOrder": 1},
        {**out_of_order[1], "displayOrder": 2},
    ]
    rejected = client.put(f"{BASE}/versions/{version['id']}/periods", headers=admin, json={"periods": reversed_order})
    assert rejected.status_code == 422

    partial = [{**out_of_order[0], "displayOrder": 2}, out_of_order[1]]
    assert client.put(f"{BASE}/versions/{version['id']}/periods", headers=admin, json={"periods": partial}).status_code == 422
