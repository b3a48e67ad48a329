import pytest
from fastapi import status

from studyhub.model.lab_attempts import LabAttempt
from studyhub.model.labs import VirtualLab
from studyhub.model.user_progress import UserProgress
from studyhub.model.users import User


@pytest.fixture
def started(client, test_lab, test_user):
    response = client.post(f"/labs/{test_lab.lab_id}/attempts", json={"user_id": test_user.user_id})
    assert response.status_code == status.HTTP_201_CREATED
    return response.json()


class TestStartLabAttempt:
    def test_start_returns_lab_summary(self, started, test_lab):
        assert started["status"] == "in_progress"
        assert started["screenshots"] == []
        assert started["lab"] == {
            "lab_id": test_lab.lab_id,
            "title": "Port Scanning Lab",
            "instructions": "Scan the target network.",
            "objectives": ["Find open ports"],
            "resources": ["nmap cheat sheet"],
        }

    def test_in_progress_attempt_is_returned_unchanged(self, client, started, test_lab, test_user):
        response = client.post(f"/labs/{test_lab.lab_id}/attempts", json={"user_id": test_user.user_id})

        assert response.status_code == status.HTTP_200_OK
        assert response.json() == started

    def test_finished_attempt_is_reset_in_place(self, client, started, test_lab, test_user, db_session):
        client.patch(f"/labs/attempts/{started['attempt_id']}", json={
            "status": "failed",
            "score": 40,
            "notes": "ran out of time",
            "screenshots": ["scan.png"],
            "time_spent": 900,
        })

        response = client.post(f"/labs/{test_lab.lab_id}/attempts", json={"user_id": test_user.user_id})

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["attempt_id"] == started["attempt_id"]
        assert data["status"] == "in_progress"
        assert data["completed_at"] is None
        assert data["score"] is None
        assert data["notes"] is None
        assert data["time_spent"] is None
        assert data["screenshots"] == []
        assert db_session.query(LabAttempt).count() == 1

    def test_user_id_is_required(self, client, test_lab):
        response = client.post(f"/labs/{test_lab.lab_id}/attempts", json={})

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_missing_lab(self, client, test_user):
        response = client.post("/labs/8/attempts", json={"user_id": test_user.user_id})

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.json()["error"] == "Lab not found"


class TestUpdateLabAttempt:
    def test_completion_with_good_score_accrues_lab_progress(self, client, started, test_user, db_session):
        response = client.patch(f"/labs/attempts/{started['attempt_id']}", json={"status": "completed", "score": 85})

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["completed_at"] is not None
        db_session.expire_all()
        metrics = {
            p.metric: p.value
            for p in db_session.query(UserProgress).filter_by(user_id=test_user.user_id, category="labs")
        }
        assert metrics == {"completed_labs": 1, "average_score": 85}
        assert db_session.get(User, test_user.user_id).study_points == 8

    def test_repeated_completion_accrues_once(self, client, started, test_user, db_session):
        url = f"/labs/attempts/{started['attempt_id']}"
        client.patch(url, json={"status": "completed", "score": 90})

        response = client.patch(url, json={"status": "completed"})

        assert response.status_code == status.HTTP_200_OK
        db_session.expire_all()
        counter = db_session.query(UserProgress).filter_by(
            user_id=test_user.user_id, category="labs", metric="completed_labs",
        ).one()
        assert counter.value == 1
        assert db_session.get(User, test_user.user_id).study_points == 9

    def test_completion_with_low_score_accrues_nothing(self, client, started, db_session):
        client.patch(f"/labs/attempts/{started['attempt_id']}", json={"status": "completed", "score": 60})

        assert db_session.query(UserProgress).count() == 0

    def test_notes_only_update(self, client, started):
        data = client.patch(f"/labs/attempts/{started['attempt_id']}", json={"notes": "found port 22"}).json()

        assert data["notes"] == "found port 22"
        assert data["status"] == "in_progress"
        assert data["completed_at"] is None

    def test_invalid_status(self, client, started):
        response = client.patch(f"/labs/attempts/{started['attempt_id']}", json={"status": "paused"})

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_missing_attempt(self, client):
        assert client.patch("/labs/attempts/3", json={"notes": "x"}).status_code == status.HTTP_404_NOT_FOUND
        assert client.get("/labs/attempts/3").status_code == status.HTTP_404_NOT_FOUND

    def test_get_attempt(self, client, started):
        response = client.get(f"/labs/attempts/{started['attempt_id']}")

        assert response.status_code == status.HTTP_200_OK
        assert response.json() == started


class TestLabCatalog:
    def test_create_lab(self, client, test_user):
        response = client.post("/labs", json={
            "title": "Packet Capture",
            "description": "Capture and read traffic.",
            "instructions": "Start Wireshark on eth0.",
            "objectives": ["Capture a TCP handshake"],
            "created_by": test_user.user_id,
        })

        assert response.status_code == status.HTTP_201_CREATED
        data = response.json()
        assert data["category"] == "general"
        assert data["difficulty"] == "intermediate"
        assert data["estimated_time"] == 60
        assert data["prerequisites"] == []
        assert data["creator_id"] == test_user.user_id
        assert data["attempt_count"] == 0

    def test_create_requires_description_and_instructions(self, client):
        response = client.post("/labs", json={"title": "Packet Capture"})

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["error"] == "Title, description, and instructions are required"

    def test_list_filters_and_user_attempts(self, client, started, test_lab, test_user, db_session):
        db_session.add_all([
            VirtualLab(title="Firewall Rules", category="defense", instructions="x"),
            VirtualLab(title="Retired Lab", category="reconnaissance", instructions="x", is_active=False),
        ])
        db_session.commit()

        labs = client.get("/labs", params={"category": "reconnaissance", "user_id": test_user.user_id}).json()["labs"]

        assert [lab["title"] for lab in labs] == ["Port Scanning Lab"]
        assert labs[0]["attempt_count"] == 1
        assert [a["attempt_id"] for a in labs[0]["attempts"]] == [started["attempt_id"]]
        assert len(client.get("/labs").json()["labs"]) == 2

    def test_get_lab(self, client, started, test_lab):
        response = client.get(f"/labs/{test_lab.lab_id}")

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["attempt_count"] == 1
        assert data["attempts"][0]["status"] == "in_progress"
        assert client.get("/labs/404").status_code == status.HTTP_404_NOT_FOUND

    def test_update_lab(self, client, test_lab):
        response = client.patch(f"/labs/{test_lab.lab_id}", json={"difficulty": "advanced", "week_reference": "week-3"})

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["difficulty"] == "advanced"
        assert data["week_reference"] == "week-3"
        assert data["title"] == "Port Scanning Lab"

    def test_update_rejects_empty_title(self, client, test_lab):
        response = client.patch(f"/labs/{test_lab.lab_id}", json={"title": ""})

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_delete_lab_removes_attempts(self, client, started, test_lab, db_session):
        response = client.delete(f"/labs/{test_lab.lab_id}")

        assert response.status_code == status.HTTP_200_OK
        db_session.expire_all()
        assert db_session.query(VirtualLab).count() == 0
        assert db_session.query(LabAttempt).count() == 0
        assert client.delete(f"/labs/{test_lab.lab_id}").status_code == status.HTTP_404_NOT_FOUND

    def test_list_lab_attempts(self, client, started, test_lab, test_user, db_session):
        other = User(username="bob", name="Bob")
        db_session.add(other)
        db_session.commit()
        client.post(f"/labs/{test_lab.lab_id}/attempts", json={"user_id": other.user_id})

        everyone = client.get(f"/labs/{test_lab.lab_id}/attempts").json()["attempts"]
        mine = client.get(f"/labs/{test_lab.lab_id}/attempts", params={"user_id": test_user.user_id}).json()["attempts"]

        assert {a["user"]["username"] for a in everyone} == {"alice", "bob"}
        assert [a["attempt_id"] for a in mine] == [started["attempt_id"]]
        assert client.get("/labs/404/attempts").status_code == status.HTTP_404_NOT_FOUND
