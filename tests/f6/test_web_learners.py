"""Tests for learner, streak, leaderboard and reference endpoints (F6)."""


class TestHealth:
    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ok"
        assert data["version"]


class TestReferenceEndpoints:
    """Tests for /api/grades and /api/subjects."""

    def test_list_grades(self, client):
        numbers = [g["number"] for g in client.get("/api/grades").json()]
        assert numbers == [10, 11, 12]

    def test_create_grade(self, client):
        response = client.post("/api/grades", json={"number": 9})
        assert response.status_code == 201
        assert response.json()["number"] == 9

    def test_duplicate_grade(self, client):
        response = client.post("/api/grades", json={"number": 12})
        assert response.status_code == 409
        assert response.json()["detail"] == "Grade 12 already exists"

    def test_subjects_of_grade(self, client):
        grade_id = next(g["id"] for g in client.get("/api/grades").json() if g["number"] == 10)
        names = [s["name"] for s in client.get(f"/api/subjects?grade_id={grade_id}").json()]
        assert names == ["Mathematics P1"]

    def test_create_subject(self, client):
        grade_id = client.get("/api/grades").json()[0]["id"]
        response = client.post("/api/subjects", json={"name": "Geography P1", "grade_id": grade_id})
        assert response.status_code == 201
        assert response.json()["grade_number"] == 10


class TestUpsertLearner:
    """Tests for POST /api/learners."""

    def test_create(self, client):
        response = client.post(
            "/api/learners",
            json={"uid": "u1", "name": "Thandi", "grade": 12, "curriculum": "IEB"},
        )
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "OK"
        assert data["message"] == "Successfully updated learner"
        assert data["is_new"] is True
        assert data["learner"]["grade_number"] == 12
        assert data["learner"]["curriculum"] == "CAPS,IEB"

    def test_update(self, client):
        client.post("/api/learners", json={"uid": "u1", "name": "Thandi"})
        response = client.post("/api/learners", json={"uid": "u1", "terms": [1, 2, 3]})
        data = response.json()
        assert data["is_new"] is False
        assert data["learner"]["terms"] == "1,2,3"
        assert data["learner"]["name"] == "Thandi"

    def test_unknown_grade(self, client):
        response = client.post("/api/learners", json={"uid": "u1", "grade": 3})
        assert response.status_code == 404
        assert response.json()["detail"] == "Grade not found"

    def test_missing_uid(self, client):
        response = client.post("/api/learners", json={"name": "Thandi"})
        assert response.status_code == 422

    def test_malformed_email(self, client):
        response = client.post("/api/learners", json={"uid": "u1", "email": "not-an-email"})
        assert response.status_code == 400
        assert response.json()["detail"] == "Invalid email address"


class TestLearnerEndpoints:
    """Tests for /api/learners/{uid}."""

    def test_get(self, client, make_learner):
        make_learner("u1")
        response = client.get("/api/learners/u1")
        assert response.status_code == 200
        assert response.json()["uid"] == "u1"

    def test_get_unknown(self, client):
        response = client.get("/api/learners/ghost")
        assert response.status_code == 404
        assert response.json()["detail"] == "Learner not found"

    def test_delete(self, client, make_learner):
        make_learner("u1")
        assert client.delete("/api/learners/u1").status_code == 204
        assert client.get("/api/learners/u1").status_code == 404

    def test_subjects(self, client, make_learner):
        make_learner("u1")
        subjects = client.get("/api/learners/u1/subjects").json()
        assert {s["name"] for s in subjects} == {
            "Mathematics P1",
            "Mathematics P2",
            "Physical Sciences P1",
        }
        assert all(s["total"] == 0 for s in subjects)


class TestCheckAnswer:
    """Tests for POST /api/learners/check-answer."""

    def test_correct_answer(self, client, make_learner, approved_question):
        question_id = approved_question()
        make_learner("u1")

        response = client.post(
            "/api/learners/check-answer",
            json={"uid": "u1", "question_id": question_id, "answer": " 4 "},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["correct"] is True
        assert data["message"] == "Correct answer!"
        assert data["points_earned"] == 1
        assert data["streak"]["current_streak"] == 1

    def test_results_and_stats_follow(self, client, make_learner, approved_question):
        question_id = approved_question()
        make_learner("u1")
        client.post(
            "/api/learners/check-answer",
            json={"uid": "u1", "question_id": question_id, "answer": "5"},
        )

        results = client.get("/api/learners/u1/results").json()
        assert [r["outcome"] for r in results] == ["incorrect"]

        stats = client.get("/api/learners/u1/stats").json()
        assert stats["total_questions"] == 1
        assert stats["subjects"]["Mathematics"]["incorrect"] == 1

        removed = client.delete("/api/learners/u1/results?subject_name=Mathematics P1")
        assert removed.json()["message"] == "Removed 1 results"

    def test_empty_answer_is_incorrect(self, client, make_learner, approved_question):
        """An empty answer is graded, not refused."""
        question_id = approved_question()
        make_learner("u1")
        response = client.post(
            "/api/learners/check-answer",
            json={"uid": "u1", "question_id": question_id, "answer": ""},
        )
        assert response.status_code == 200
        assert response.json()["correct"] is False
        assert response.json()["points_earned"] == 0

    def test_null_answer(self, client, make_learner, approved_question):
        question_id = approved_question()
        make_learner("u1")
        response = client.post(
            "/api/learners/check-answer",
            json={"uid": "u1", "question_id": question_id, "answer": None},
        )
        assert response.status_code == 400
        assert response.json()["detail"] == "Missing required fields"

    def test_unknown_question(self, client, make_learner):
        make_learner("u1")
        response = client.post(
            "/api/learners/check-answer",
            json={"uid": "u1", "question_id": 999, "answer": "4"},
        )
        assert response.status_code == 404
        assert response.json()["detail"] == "Question not found"


class TestFavorites:
    def test_add_list_remove(self, client, make_learner, approved_question):
        question_id = approved_question()
        make_learner("u1")

        assert client.post(f"/api/learners/u1/favorites/{question_id}").status_code == 201
        favorites = client.get("/api/learners/u1/favorites").json()
        assert [q["id"] for q in favorites] == [question_id]

        assert client.delete(f"/api/learners/u1/favorites/{question_id}").status_code == 204
        response = client.delete(f"/api/learners/u1/favorites/{question_id}")
        assert response.status_code == 404
        assert response.json()["detail"] == "Favorite not found"


class TestStreakEndpoints:
    def test_track_and_read(self, client, make_learner):
        make_learner("u1")

        tracked = client.post("/api/streaks/track", json={"uid": "u1"})
        assert tracked.status_code == 200
        assert tracked.json()["current_streak"] == 1

        info = client.get("/api/streaks/u1").json()
        assert info["current_streak"] == 1
        assert info["streak_maintained"] is True

    def test_unknown_learner(self, client):
        assert client.get("/api/streaks/ghost").status_code == 404


class TestLeaderboardEndpoint:
    def test_leaderboard(self, client, make_learner, approved_question):
        question_id = approved_question()
        make_learner("u1", name="Thandi")
        client.post(
            "/api/learners/check-answer",
            json={"uid": "u1", "question_id": question_id, "answer": "4"},
        )

        data = client.get("/api/leaderboard?uid=u1").json()

        assert data["period"] == 7
        assert data["user_rank"] == 1
        entry = data["rankings"][0]
        assert entry["name"] == "Thandi"
        assert entry["unique_subjects"] == 1
        assert entry["score"] == 111

    def test_uid_required(self, client):
        assert client.get("/api/leaderboard").status_code == 422


class TestAchievementEndpoints:
    """Tests for achievements and badges."""

    def test_achievements(self, client, make_learner, approved_question):
        question_id = approved_question()
        make_learner("u1")
        client.post(
            "/api/learners/check-answer",
            json={"uid": "u1", "question_id": question_id, "answer": "4"},
        )

        data = client.get("/api/learners/u1/achievements").json()

        assert data["earned"] == 1
        assert data["total"] == 5
        assert data["items"][0] == {
            "id": "first_correct",
            "name": "First Correct Answer",
            "description": "Got your first question right!",
            "achieved": True,
        }

    def test_achievements_unknown_learner(self, client):
        assert client.get("/api/learners/ghost/achievements").status_code == 404

    def test_create_and_award_badge(self, client, make_learner):
        make_learner("admin1", role="admin")
        make_learner("u1")

        created = client.post(
            "/api/badges",
            json={"uid": "admin1", "name": "First Quiz", "rules": "Complete your first quiz"},
        )
        assert created.status_code == 201
        badge_id = created.json()["id"]
        assert [b["name"] for b in client.get("/api/badges").json()] == ["First Quiz"]

        awarded = client.post("/api/learners/u1/badges", json={"badge_id": badge_id})
        assert awarded.status_code == 201
        assert awarded.json()["rules"] == "Complete your first quiz"

        held = client.get("/api/learners/u1/badges").json()
        assert [b["badge_id"] for b in held] == [badge_id]

        again = client.post("/api/learners/u1/badges", json={"badge_id": badge_id})
        assert again.status_code == 409
        assert again.json()["detail"] == "Learner already has this badge"

    def test_learner_cannot_create_badge(self, client, make_learner):
        make_learner("u1")
        response = client.post("/api/badges", json={"uid": "u1", "name": "First Quiz"})
        assert response.status_code == 403

    def test_award_unknown_badge(self, client, make_learner):
        make_learner("u1")
        response = client.post("/api/learners/u1/badges", json={"badge_id": 42})
        assert response.status_code == 404
        assert response.json()["detail"] == "Badge not found"
