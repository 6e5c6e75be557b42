from fastapi import status

from src.handoff.domain.models.systems_review import SYSTEMS_REVIEW, get_system


async def _create_patient(client, headers, **fields):
    payload = {"roomNumber": "305A", "name": "J. Doe", "age": 67, "diagnosis": "CHF exacerbation"}
    payload.update(fields)
    response = await client.post("/api/v1/patients/", json=payload, headers=headers)
    assert response.status_code == status.HTTP_201_CREATED
    return response.json()


async def test_create_patient_initializes_systems_review(client, auth_headers):
    patient = await _create_patient(client, auth_headers)

    assert patient["id"]
    assert patient["roomNumber"] == "305A"
    assert patient["codeStatus"] == "Full Code"
    assert patient["lastUpdated"]
    assert set(patient["systemsReview"]) == {system.id for system in SYSTEMS_REVIEW}

    statuses = await client.get(f"/api/v1/patients/{patient['id']}/systems", headers=auth_headers)
    assert statuses.status_code == status.HTTP_200_OK
    for entry in statuses.json():
        assert entry["status"] == get_system(entry["systemId"]).default
        assert entry["deviationCount"] == 0


async def test_create_patient_requires_room_and_name(client, auth_headers):
    response = await client.post("/api/v1/patients/", json={"roomNumber": "", "name": "J. Doe"}, headers=auth_headers)
    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY

    response = await client.post("/api/v1/patients/", json={"roomNumber": "4"}, headers=auth_headers)
    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


async def test_patch_merges_only_supplied_fields(client, auth_headers):
    patient = await _create_patient(client, auth_headers, isolation="Contact")

    for _ in range(2):
        response = await client.patch(
            f"/api/v1/patients/{patient['id']}",
            json={"quickOneLiner": "stable"},
            headers=auth_headers,
        )
        assert response.status_code == status.HTTP_200_OK
        body = response.json()
        assert body["quickOneLiner"] == "stable"
        assert body["isolation"] == "Contact"
        assert body["diagnosis"] == "CHF exacerbation"


async def test_patch_rejects_store_managed_fields(client, auth_headers):
    patient = await _create_patient(client, auth_headers)

    response = await client.patch(
        f"/api/v1/patients/{patient['id']}",
        json={"lastUpdated": "2020-01-01T00:00:00Z"},
        headers=auth_headers,
    )
    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


async def test_census_is_sorted_by_room_as_text(client, auth_headers):
    for room in ["305A", "12", "2"]:
        await _create_patient(client, auth_headers, roomNumber=room)

    response = await client.get("/api/v1/patients/", headers=auth_headers)

    assert response.status_code == status.HTTP_200_OK
    assert [p["roomNumber"] for p in response.json()["patients"]] == ["12", "2", "305A"]


async def test_systems_review_updates_feed_status_summary(client, auth_headers):
    patient = await _create_patient(client, auth_headers)
    base = f"/api/v1/patients/{patient['id']}/systems/neuro"

    check = await client.put(f"{base}/checks/oriented", json={"value": False}, headers=auth_headers)
    assert check.status_code == status.HTTP_200_OK
    assert check.json()["systemsReview"]["neuro"]["checks"]["oriented"] is False

    notes = await client.put(f"{base}/notes", json={"notes": "Confused to time overnight"}, headers=auth_headers)
    assert notes.status_code == status.HTTP_200_OK

    statuses = await client.get(f"/api/v1/patients/{patient['id']}/systems", headers=auth_headers)
    neuro = next(s for s in statuses.json() if s["systemId"] == "neuro")
    assert neuro["deviationCount"] == 1
    assert neuro["status"] == "1 deviations (Alert) Notes: Confused to time overnight..."


async def test_unknown_system_or_check_returns_404(client, auth_headers):
    patient = await _create_patient(client, auth_headers)
    base = f"/api/v1/patients/{patient['id']}/systems"

    response = await client.put(f"{base}/ortho/checks/rom", json={"value": False}, headers=auth_headers)
    assert response.status_code == status.HTTP_404_NOT_FOUND

    response = await client.put(f"{base}/neuro/checks/gait", json={"value": False}, headers=auth_headers)
    assert response.status_code == status.HTTP_404_NOT_FOUND


async def test_timeline_and_todo_lists(client, auth_headers):
    patient = await _create_patient(client, auth_headers)
    base = f"/api/v1/patients/{patient['id']}"

    await client.post(f"{base}/timeline", json={"date": "2026-10-17", "event": "Admitted via ED"}, headers=auth_headers)
    timeline = await client.post(f"{base}/timeline", json={"date": "2026-10-18", "event": "Lasix 40 IV"}, headers=auth_headers)
    assert [e["event"] for e in timeline.json()["hospitalCourse"]] == ["Admitted via ED", "Lasix 40 IV"]

    removed = await client.delete(f"{base}/timeline/0", headers=auth_headers)
    assert [e["event"] for e in removed.json()["hospitalCourse"]] == ["Lasix 40 IV"]

    missing = await client.delete(f"{base}/timeline/4", headers=auth_headers)
    assert missing.status_code == status.HTTP_404_NOT_FOUND

    await client.post(f"{base}/todos", json={"task": "AM BMP"}, headers=auth_headers)
    await client.post(f"{base}/todos", json={"task": "Daily weight"}, headers=auth_headers)
    toggled = await client.post(f"{base}/todos/0/toggle", headers=auth_headers)
    assert [t["completed"] for t in toggled.json()["todos"]] == [True, False]

    removed = await client.delete(f"{base}/todos/1", headers=auth_headers)
    assert [t["task"] for t in removed.json()["todos"]] == ["AM BMP"]


async def test_allergies_add_and_remove(client, auth_headers):
    patient = await _create_patient(client, auth_headers)
    base = f"/api/v1/patients/{patient['id']}/allergies"

    await client.post(base, json={"allergy": "Penicillin"}, headers=auth_headers)
    added = await client.post(base, json={"allergy": "Penicillin"}, headers=auth_headers)
    assert added.json()["allergies"] == ["Penicillin"]

    removed = await client.delete(f"{base}/Penicillin", headers=auth_headers)
    assert removed.json()["allergies"] == []


async def test_sbar_report_json_and_text(client, auth_headers):
    patient = await _create_patient(client, auth_headers, quickOneLiner="67M CHF, diuresing")
    base = f"/api/v1/patients/{patient['id']}"

    report = await client.get(f"{base}/sbar", headers=auth_headers)
    assert report.status_code == status.HTTP_200_OK
    body = report.json()
    assert body["situation"] == "67M CHF, diuresing"
    assert body["background"] == "67 y/o admitted for CHF exacerbation. Allergies: None."
    assert body["recommendation"] == "None outstanding."

    text = await client.get(f"{base}/sbar.txt", headers=auth_headers)
    assert text.status_code == status.HTTP_200_OK
    assert text.headers["content-type"].startswith("text/plain")
    assert text.text == body["text"]


async def test_delete_requires_confirmation(client, auth_headers):
    patient = await _create_patient(client, auth_headers)
    url = f"/api/v1/patients/{patient['id']}"

    unconfirmed = await client.delete(url, headers=auth_headers)
    assert unconfirmed.status_code == status.HTTP_409_CONFLICT
    assert (await client.get(url, headers=auth_headers)).status_code == status.HTTP_200_OK

    confirmed = await client.delete(url, params={"confirm": "true"}, headers=auth_headers)
    assert confirmed.status_code == status.HTTP_204_NO_CONTENT
    assert (await client.get(url, headers=auth_headers)).status_code == status.HTTP_404_NOT_FOUND

    census = await client.get("/api/v1/patients/", headers=auth_headers)
    assert census.json()["patients"] == []


async def test_missing_patient_returns_404(client, auth_headers):
    for method, path in [
        ("GET", "/api/v1/patients/nope"),
        ("PATCH", "/api/v1/patients/nope"),
        ("GET", "/api/v1/patients/nope/sbar"),
        ("POST", "/api/v1/patients/nope/todos"),
    ]:
        kwargs = {"json": {"task": "x"}} if method == "POST" else {}
        if method == "PATCH":
            kwargs = {"json": {"notes": "x"}}
        response = await client.request(method, path, headers=auth_headers, **kwargs)
        assert response.status_code == status.HTTP_404_NOT_FOUND, path


async def test_systems_schema_endpoint(client):
    response = await client.get("/api/v1/systems/")
    assert response.status_code == status.HTTP_200_OK
    systems = response.json()
    assert [s["id"] for s in systems] == [system.id for system in SYSTEMS_REVIEW]
    assert systems[0]["icon"] == "brain"

    missing = await client.get("/api/v1/systems/ortho")
    assert missing.status_code == status.HTTP_404_NOT_FOUND


async def test_patch_systems_review_merges_per_system(client, auth_headers):
    patient = await _create_patient(client, auth_headers)
    url = f"/api/v1/patients/{patient['id']}"
    await client.put(f"{url}/systems/neuro/checks/pupils", json={"value": False}, headers=auth_headers)

    response = await client.patch(url, json={"systemsReview": {"neuro": {"notes": "R pupil sluggish"}}}, headers=auth_headers)

    assert response.status_code == status.HTTP_200_OK
    review = response.json()["systemsReview"]
    assert set(review) == {system.id for system in SYSTEMS_REVIEW}
    assert review["neuro"]["notes"] == "R pupil sluggish"
    assert review["neuro"]["checks"]["pupils"] is False
    assert review["neuro"]["checks"]["oriented"] is True
    assert review["cardio"] == patient["systemsReview"]["cardio"]


async def test_patch_rejects_unknown_system_ids(client, auth_headers):
    patient = await _create_patient(client, auth_headers)
    url = f"/api/v1/patients/{patient['id']}"

    response = await client.patch(
        url,
        json={"systemsReview": {"bogus": {"notes": "x"}, "neuro": {"notes": "x"}}},
        headers=auth_headers,
    )

    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
    stored = (await client.get(url, headers=auth_headers)).json()
    assert "bogus" not in stored["systemsReview"]
    assert stored["systemsReview"]["neuro"]["notes"] == ""
