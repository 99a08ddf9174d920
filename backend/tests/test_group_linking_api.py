from __future__ import annotations

from services.group_linking import find_compatible_groups


def _linked_ids(client, table_id, cell_id):
    rows = client.get(f"/api/schedule-cells/linked-groups/{table_id}").json()
    return sorted(r["group_id"] for r in rows if r["cell_id"] == cell_id)


def test_compatible_groups_require_all_three_fields(admin_client, make_group):
    match = make_group("B-Math", subject_id=10, teacher_id=7, education_level="B", students=[1, 2, 3])
    make_group("A-Math", subject_id=10, teacher_id=7, education_level="A")
    make_group("B-Other-Teacher", subject_id=10, teacher_id=8, education_level="B")
    make_group("B-Physics", subject_id=11, teacher_id=7, education_level="B")

    res = admin_client.get(
        "/api/groups/compatible", params={"subject_id": 10, "teacher_id": 7, "education_level": "B"}
    )
    assert res.status_code == 200
    body = res.json()
    assert [g["id"] for g in body] == [match.id]
    assert body[0]["students_count"] == 3


def test_missing_key_means_no_candidates(admin_client, make_group, db):
    make_group("B-Math", subject_id=10, teacher_id=7, education_level="B")

    res = admin_client.get("/api/groups/compatible", params={"subject_id": 10, "teacher_id": 7})
    assert res.status_code == 200
    assert res.json() == []
    assert find_compatible_groups(db, subject_id=None, teacher_id=7, education_level="B") == []


def test_link_groups_is_a_full_replacement(admin_client, make_group, cell_payload, table_id):
    cell = admin_client.post("/api/schedule-cells/", json=cell_payload()).json()
    g1, g2, g3 = (make_group(f"G{i}", subject_id=10, teacher_id=7, education_level="B") for i in range(1, 4))
    ids = [g1.id, g2.id, g3.id]

    res = admin_client.post(f"/api/schedule-cells/{cell['id']}/link-groups", json={"group_ids": ids})
    assert res.status_code == 200
    assert res.json()["group_ids"] == ids
    assert _linked_ids(admin_client, table_id, cell["id"]) == sorted(ids)

    # Same set again: same final state.
    admin_client.post(f"/api/schedule-cells/{cell['id']}/link-groups", json={"group_ids": ids})
    assert _linked_ids(admin_client, table_id, cell["id"]) == sorted(ids)

    admin_client.post(f"/api/schedule-cells/{cell['id']}/link-groups", json={"group_ids": [g1.id]})
    assert _linked_ids(admin_client, table_id, cell["id"]) == [g1.id]

    admin_client.post(f"/api/schedule-cells/{cell['id']}/link-groups", json={"group_ids": []})
    assert _linked_ids(admin_client, table_id, cell["id"]) == []


def test_duplicate_ids_are_collapsed(admin_client, make_group, cell_payload, table_id):
    cell = admin_client.post("/api/schedule-cells/", json=cell_payload()).json()
    g = make_group("G", subject_id=10, teacher_id=7, education_level="B")

    res = admin_client.post(f"/api/schedule-cells/{cell['id']}/link-groups", json={"group_ids": [g.id, g.id]})
    assert res.status_code == 200
    assert res.json()["group_ids"] == [g.id]
    assert _linked_ids(admin_client, table_id, cell["id"]) == [g.id]


def test_incompatible_or_unknown_groups_are_rejected(admin_client, make_group, cell_payload, table_id):
    cell = admin_client.post("/api/schedule-cells/", json=cell_payload()).json()
    ok = make_group("OK", subject_id=10, teacher_id=7, education_level="B")
    wrong_level = make_group("Wrong", subject_id=10, teacher_id=7, education_level="A")
    admin_client.post(f"/api/schedule-cells/{cell['id']}/link-groups", json={"group_ids": [ok.id]})

    res = admin_client.post(
        f"/api/schedule-cells/{cell['id']}/link-groups", json={"group_ids": [wrong_level.id, 999]}
    )
    assert res.status_code == 400
    body = res.json()
    assert body["code"] == "INCOMPATIBLE_GROUPS"
    assert body["errors"] == [f"GROUP_NOT_COMPATIBLE:{wrong_level.id}", "GROUP_NOT_FOUND:999"]

    # Previous links survive a rejected request.
    assert _linked_ids(admin_client, table_id, cell["id"]) == [ok.id]


def test_link_unknown_cell_is_404(admin_client):
    res = admin_client.post("/api/schedule-cells/999/link-groups", json={"group_ids": []})
    assert res.status_code == 404


def test_linked_groups_are_per_table(admin_client, make_group, cell_payload, table_id):
    other_table = admin_client.post("/api/schedule-tables/", json={"name": "Salle 2"}).json()["id"]
    here = admin_client.post("/api/schedule-cells/", json=cell_payload()).json()
    there = admin_client.post("/api/schedule-cells/", json=cell_payload(table_id=other_table)).json()
    g = make_group("G", subject_id=10, teacher_id=7, education_level="B")

    admin_client.post(f"/api/schedule-cells/{here['id']}/link-groups", json={"group_ids": [g.id]})
    admin_client.post(f"/api/schedule-cells/{there['id']}/link-groups", json={"group_ids": [g.id]})

    rows = admin_client.get(f"/api/schedule-cells/linked-groups/{table_id}").json()
    assert [(r["cell_id"], r["group_id"], r["group_name"]) for r in rows] == [(here["id"], g.id, "G")]


def test_group_schedule_assignments_and_dates(admin_client, make_group, cell_payload):
    g = make_group("G", subject_id=10, teacher_id=7, education_level="B")
    friday = admin_client.post("/api/schedule-cells/", json=cell_payload(day_of_week=0)).json()
    monday = admin_client.post("/api/schedule-cells/", json=cell_payload(day_of_week=3)).json()
    for cell in (monday, friday):
        admin_client.post(f"/api/schedule-cells/{cell['id']}/link-groups", json={"group_ids": [g.id]})

    rows = admin_client.get(f"/api/groups/{g.id}/schedule-assignments").json()
    assert [(r["cell_id"], r["day_of_week"], r["table_name"]) for r in rows] == [
        (friday["id"], 0, "Salle 1"),
        (monday["id"], 3, "Salle 1"),
    ]

    res = admin_client.get(f"/api/groups/{g.id}/scheduled-dates", params={"from_date": "2026-10-19", "weeks": 2})
    assert res.status_code == 200
    assert res.json() == {"dates": ["2026-10-19", "2026-10-23", "2026-10-26"]}

    assert admin_client.get("/api/groups/999/scheduled-dates").status_code == 404


def test_update_unlinks_groups_that_no_longer_match(admin_client, make_group, cell_payload, table_id):
    cell = admin_client.post("/api/schedule-cells/", json=cell_payload()).json()
    g = make_group("G", subject_id=10, teacher_id=7, education_level="B")
    admin_client.post(f"/api/schedule-cells/{cell['id']}/link-groups", json={"group_ids": [g.id]})

    # Moving the lesson in time keeps its groups.
    res = admin_client.put(f"/api/schedule-cells/{cell['id']}", json=cell_payload(start_time="11:00", end_time="12:00"))
    assert res.status_code == 200
    assert _linked_ids(admin_client, table_id, cell["id"]) == [g.id]

    res = admin_client.put(f"/api/schedule-cells/{cell['id']}", json=cell_payload(subject_id=99))
    assert res.status_code == 200
    assert res.json()["subject_id"] == 99
    assert _linked_ids(admin_client, table_id, cell["id"]) == []
    assert admin_client.get(f"/api/groups/{g.id}/schedule-assignments").json() == []


def test_update_keeps_only_the_groups_still_compatible(admin_client, make_group, cell_payload, table_id):
    cell = admin_client.post("/api/schedule-cells/", json=cell_payload()).json()
    g = make_group("G", subject_id=10, teacher_id=7, education_level="B")
    admin_client.post(f"/api/schedule-cells/{cell['id']}/link-groups", json={"group_ids": [g.id]})

    res = admin_client.put(f"/api/schedule-cells/{cell['id']}", json=cell_payload(teacher_id=8))
    assert res.status_code == 200
    assert _linked_ids(admin_client, table_id, cell["id"]) == []

    other = make_group("H", subject_id=10, teacher_id=8, education_level="B")
    res = admin_client.post(f"/api/schedule-cells/{cell['id']}/link-groups", json={"group_ids": [other.id]})
    assert res.status_code == 200
    assert _linked_ids(admin_client, table_id, cell["id"]) == [other.id]
