"""Department, position, and candidate endpoint tests."""

from __future__ import annotations

from fastapi.testclient import TestClient

from fakes import Records


def test_department_crud(admin_client: TestClient, records: Records) -> None:
    """Departments list by name with counts and reject duplicates."""
    records.department("Mass Communication")
    created = admin_client.post("/api/departments", json={"name": " Computer Science "})
    assert created.status_code == 201
    department = created.json()["department"]
    assert department["name"] == "Computer Science"
    assert (department["student_count"], department["election_count"]) == (0, 0)

    duplicate = admin_client.post("/api/departments", json={"name": "Computer Science"})
    assert duplicate.status_code == 409
    assert duplicate.json()["error"] == "Department with this name already exists"

    blank = admin_client.post("/api/departments", json={"name": ""})
    assert blank.status_code == 400

    records.voter(department["id"])
    listed = admin_client.get("/api/departments").json()["departments"]
    assert [d["name"] for d in listed] == ["Computer Science", "Mass Communication"]
    assert listed[0]["student_count"] == 1

    renamed = admin_client.put(f"/api/departments/{department['id']}", json={"name": "CS"})
    assert renamed.json()["department"]["name"] == "CS"
    clash = admin_client.put(
        f"/api/departments/{department['id']}", json={"name": "Mass Communication"}
    )
    assert clash.status_code == 409


def test_position_rules(admin_client: TestClient, records: Records) -> None:
    """Positions need an existing election and a unique name within it."""
    election = records.election(records.department()["id"])

    missing = admin_client.post("/api/positions", json={"name": "President"})
    assert missing.status_code == 400
    assert missing.json()["error"] == "Valid election is required"

    unknown = admin_client.post("/api/positions", json={"name": "President", "electionId": 99})
    assert unknown.status_code == 404

    created = admin_client.post(
        "/api/positions", json={"name": "President", "electionId": election["id"]}
    )
    assert created.status_code == 201
    assert created.json()["position"]["max_choices"] == 1
    assert created.json()["position"]["election"]["name"] == election["name"]

    duplicate = admin_client.post(
        "/api/positions", json={"name": "President", "electionId": election["id"]}
    )
    assert duplicate.status_code == 409
    assert duplicate.json()["error"] == "A position with this name already exists in this election"

    zero = admin_client.post(
        "/api/positions",
        json={"name": "Treasurer", "electionId": election["id"], "maxChoices": 0},
    )
    assert zero.status_code == 400


def test_candidate_rules(admin_client: TestClient, records: Records) -> None:
    """Candidates need a position and may link only to student accounts."""
    department = records.department()
    position = records.position(records.election(department["id"])["id"])
    student = records.voter(department["id"])

    missing = admin_client.post("/api/candidates", json={"displayName": "A"})
    assert missing.status_code == 400

    admin_link = admin_client.post(
        "/api/candidates",
        json={"displayName": "A", "positionId": position["id"], "userId": 1},
    )
    assert admin_link.status_code == 400
    assert admin_link.json()["error"] == "Invalid student user"

    created = admin_client.post(
        "/api/candidates",
        json={
            "displayName": "Alice K.",
            "positionId": position["id"],
            "userId": student["id"],
            "manifesto": "  Better labs  ",
        },
    )
    assert created.status_code == 201
    candidate = created.json()["candidate"]
    assert candidate["manifesto"] == "Better labs"
    assert candidate["user"]["student_id"] == "S001"
    assert candidate["position"]["election"]["category"] == "DEPARTMENT"
    assert candidate["vote_count"] == 0

    listed = admin_client.get("/api/candidates").json()["candidates"]
    assert [c["id"] for c in listed] == [candidate["id"]]
