from datetime import date, timedelta

from fastapi.testclient import TestClient

from main import app


def _create_cohort(client):
    teacher = client.post("/teachers", json={"name": "Ustadh Ahmad"}).json()
    halaqa = client.post("/halaqat", json={"name": "Al-Fajr", "active_days": [4, 0, 1, 3]}).json()
    student = client.post("/students/", json={"name": "Amina"}).json()
    response = client.post(
        f"/students/{student['id']}/enrollments",
        json={"halaqa_id": halaqa["id"], "teacher_id": teacher["id"]},
    )
    assert response.status_code == 204
    return teacher, halaqa, student


def test_record_progress_updates_position_and_streak(conn):
    client = TestClient(app)
    teacher, halaqa, student = _create_cohort(client)
    assert halaqa["active_days"] == [0, 1, 3, 4]
    assert student["position"]["current_chapter"] == 1

    response = client.put(f"/targets/{student['id']}", json={"memorization_lines": 7})
    assert response.status_code == 200
    assert response.json()["current_streak"] == 0

    sunday = date(2026, 10, 18)
    response = client.post(
        "/progress/",
        json={
            "student_id": student["id"],
            "halaqa_id": halaqa["id"],
            "teacher_id": teacher["id"],
            "date": sunday.isoformat(),
            "category": "memorization",
            "chapter_name": "سورة الفاتحة",
            "from_verse": 1,
            "to_verse": 7,
            "quality": "excellent",
        },
    )
    assert response.status_code == 201
    entry = response.json()
    assert entry["chapter_number"] == 1
    assert entry["number_lines"] == 7.0

    position = client.get(f"/students/{student['id']}/position").json()
    assert (position["current_chapter"], position["current_verse"]) == (2, 0)
    assert position["juz_memorized"] > 0

    target = client.get(f"/targets/{student['id']}").json()
    assert target["current_streak"] == 1
    assert target["last_streak_date"] == sunday.isoformat()

    history = client.get(
        f"/targets/{student['id']}/history",
        params={"from_date": sunday.isoformat(), "to_date": (sunday + timedelta(days=6)).isoformat()},
    ).json()
    assert history["current_streak"] == 1
    assert len(history["daily_achievements"]) == 7

    summary = client.get(f"/progress/students/{student['id']}/summary").json()
    assert summary["total_memorization"] == 1
    assert summary["total_lines"] == 7.0


def test_progress_validation_errors(conn):
    client = TestClient(app)
    teacher, halaqa, student = _create_cohort(client)
    payload = {
        "student_id": student["id"],
        "halaqa_id": halaqa["id"],
        "date": "2026-10-18",
        "category": "revision",
        "chapter_name": "الفاتحة",
        "from_verse": 5,
        "to_verse": 2,
    }
    assert client.post("/progress/", json=payload).status_code == 422

    payload.update(from_verse=1, to_verse=8)
    assert client.post("/progress/", json=payload).status_code == 400

    payload.update(to_verse=7, chapter_name="not a chapter")
    assert client.post("/progress/", json=payload).status_code == 404

    other = client.post("/halaqat", json={"name": "Al-Asr"}).json()
    payload.update(chapter_name="الفاتحة", halaqa_id=other["id"])
    assert client.post("/progress/", json=payload).status_code == 400


def test_stats_endpoints_are_cached_until_progress_changes(conn):
    client = TestClient(app)
    teacher, halaqa, student = _create_cohort(client)
    client.put(f"/targets/{student['id']}", json={"memorization_lines": 7})

    board = client.get("/stats/streaks/leaderboard", params={"halaqa_id": halaqa["id"]}).json()
    assert board["students"] == []
    assert board["filtered_by_halaqa"] == "Al-Fajr"

    client.post(
        "/progress/",
        json={
            "student_id": student["id"],
            "halaqa_id": halaqa["id"],
            "date": date.today().isoformat(),
            "category": "memorization",
            "chapter_name": "الفاتحة",
            "from_verse": 1,
            "to_verse": 7,
        },
    )
    board = client.get("/stats/streaks/leaderboard", params={"halaqa_id": halaqa["id"]}).json()
    active_today = date.today().isoweekday() % 7 in (0, 1, 3, 4)
    assert len(board["students"]) == (1 if active_today else 0)

    adoption = client.get("/stats/targets/adoption", params={"include_halaqa_breakdown": True}).json()
    assert adoption["coverage_percentage"] == 100.0
    assert adoption["activation_rate"] == 100.0
    assert adoption["halaqa_breakdown"][0]["halaqa_name"] == "Al-Fajr"

    response = client.get(
        "/stats/achievement/daily",
        params={"from_date": "2026-01-01", "to_date": "2026-12-31"},
    )
    assert response.status_code == 400


def test_bulk_targets_and_lookups(conn):
    client = TestClient(app)
    teacher, halaqa, student = _create_cohort(client)
    response = client.post("/targets/bulk", json={"teacher_id": teacher["id"], "revision_pages": 2})
    assert response.json() == {"updated": 1}
    assert client.get(f"/targets/{student['id']}").json()["revision_pages"] == 2
    assert client.post("/targets/bulk", json={"revision_pages": 2}).status_code == 400

    assert client.get("/students/999").status_code == 404
    assert client.get("/targets/999").status_code == 404
    assert client.put("/targets/999", json={"memorization_lines": 3}).status_code == 404
    assert client.put(f"/targets/{student['id']}", json={"memorization_lines": 0}).status_code == 422

    lines = client.get("/chapters/lines", params={"chapter": "2", "from_verse": 1, "to_verse": 2}).json()
    assert lines["lines"] == 3.0
    assert lines["pages"] == 0.2
    assert len(client.get("/chapters/").json()) == 114
