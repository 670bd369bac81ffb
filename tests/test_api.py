"""Tests for the HTTP API."""

from datetime import date, timedelta
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient

from macro_planner.api.app import create_app
from macro_planner.containers import AppContainer
from macro_planner.domain.nutrition import MacroProfile
from tests.conftest import InMemoryProgressRepository

PROFILE = {
    "sex": "male",
    "weight_kg": 80,
    "height_cm": 180,
    "age": 30,
    "training_days_per_week": 4,
    "goal": "maintenance",
}
DAILY = {"calories": 2000, "protein_g": 150, "fat_g": 70, "carbs_g": 200}
CHICKEN_RICE = {
    "id": "chicken-rice",
    "name": "Chicken and rice",
    "ingredients": [
        {"ingredient_id": "chicken", "amount": 100},
        {"ingredient_id": "rice", "amount": 150},
    ],
}
TARGET = {"calories": 750, "protein_g": 45, "fat_g": 30, "carbs_g": 75}


@pytest.fixture
def client(container: AppContainer) -> TestClient:
    return TestClient(create_app(container))


def _week(week_number: int, change: float, **overrides: object) -> dict[str, object]:
    record: dict[str, object] = {
        "week_number": week_number,
        "start_weight_kg": 80.0,
        "end_weight_kg": 80.0 + change,
        "weight_change_kg": change,
        "days_logged": 7,
        "average_calories": 2000,
        "target_calories": 2000,
        "calorie_adherence": 100,
    }
    record.update(overrides)
    return record


def test_health(client: TestClient) -> None:
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_daily_targets(client: TestClient) -> None:
    response = client.post("/targets/daily", json={"profile": PROFILE})

    assert response.status_code == 200
    data = response.json()
    assert data["tdee"] == 2759
    assert data["bmr_method"] == "mifflin_st_jeor"
    assert data["macros"] == {
        "calories": 2759,
        "protein_g": 160,
        "fat_g": 77,
        "carbs_g": 357,
    }


def test_daily_targets_rejects_invalid_profile(client: TestClient) -> None:
    response = client.post(
        "/targets/daily", json={"profile": {**PROFILE, "weight_kg": -5}}
    )

    assert response.status_code == 422


def test_meal_target_splits_remainder(client: TestClient) -> None:
    response = client.post(
        "/targets/meal",
        json={
            "daily": DAILY,
            "logged": {"calories": 500, "protein_g": 40, "fat_g": 20, "carbs_g": 50},
            "meals_remaining": 3,
        },
    )

    assert response.status_code == 200
    assert response.json() == {
        "calories": 500,
        "protein_g": 37,
        "fat_g": 17,
        "carbs_g": 50,
        "is_last_meal": False,
    }


def test_meal_target_rejects_zero_meals_remaining(client: TestClient) -> None:
    response = client.post("/targets/meal", json={"daily": DAILY, "meals_remaining": 0})

    assert response.status_code == 422
    assert "meals_remaining" in response.json()["detail"]


def test_meal_target_for_slot_requires_profile(client: TestClient) -> None:
    response = client.post("/targets/meal", json={"daily": DAILY, "slot": "lunch"})

    assert response.status_code == 422


def test_distribution(client: TestClient) -> None:
    response = client.post(
        "/targets/distribution", json={"profile": PROFILE, "daily": DAILY}
    )

    assert response.status_code == 200
    data = response.json()
    assert data["distribution"] == {"breakfast": 0.3, "lunch": 0.4, "dinner": 0.3}
    assert data["meals"]["lunch"] == {
        "calories": 800,
        "protein_g": 60,
        "fat_g": 28,
        "carbs_g": 80,
    }
    assert sum(meal["calories"] for meal in data["meals"].values()) == 2000


def test_scale_meal(client: TestClient) -> None:
    response = client.post(
        "/meals/scale", json={"meal": CHICKEN_RICE, "target": TARGET}
    )

    assert response.status_code == 200
    data = response.json()
    amounts = {item["ingredient_id"]: item["amount"] for item in data["ingredients"]}
    assert amounts["chicken"] == pytest.approx(150, abs=5)
    assert amounts["rice"] == pytest.approx(225, abs=5)
    assert data["mode"] == "ingredient"
    assert data["converged"] is True
    assert data["is_degraded"] is False
    assert data["macros"] == TARGET


def test_scale_last_meal_reports_target(client: TestClient) -> None:
    target = {
        "calories": 612,
        "protein_g": 38,
        "fat_g": 24,
        "carbs_g": 61,
        "is_last_meal": True,
    }

    response = client.post("/meals/scale", json={"meal": CHICKEN_RICE, "target": target})

    assert response.status_code == 200
    data = response.json()
    assert data["exact_match"] is True
    assert data["is_last_meal"] is True
    assert data["macros"] == {
        "calories": 612,
        "protein_g": 38,
        "fat_g": 24,
        "carbs_g": 61,
    }


def test_rank_meals(client: TestClient) -> None:
    shake = {
        "id": "shake",
        "name": "Protein shake",
        "macros": {"calories": 300, "protein_g": 40, "fat_g": 5, "carbs_g": 10},
    }

    response = client.post(
        "/meals/rank", json={"meals": [shake, CHICKEN_RICE], "target": TARGET}
    )

    assert response.status_code == 200
    meals = response.json()["meals"]
    assert [entry["meal"]["id"] for entry in meals] == ["chicken-rice", "shake"]
    assert meals[0]["band"] == "excellent"
    assert meals[1]["scaled"]["mode"] == "legacy_proportional"
    assert meals[1]["fit_score"] < meals[0]["fit_score"]


def test_rank_rejects_meal_without_macros(client: TestClient) -> None:
    response = client.post(
        "/meals/rank",
        json={"meals": [{"id": "empty", "name": "Empty"}], "target": TARGET},
    )

    assert response.status_code == 422
    assert "empty" in response.json()["detail"]


def test_analyze_progress(client: TestClient) -> None:
    response = client.post(
        "/progress/analyze",
        json={"history": [_week(1, 0.0), _week(2, 0.0)], "goal": "moderate_loss"},
    )

    assert response.status_code == 200
    data = response.json()
    assert data["needs_adjustment"] is True
    assert data["adjustment_type"] == "decrease"
    assert data["adjustment_amount"] == 300


def test_adjust_goals(client: TestClient) -> None:
    response = client.post(
        "/progress/adjust",
        json={
            "current": {"calories": 2000, "protein_g": 150, "fat_g": 67, "carbs_g": 200},
            "history": [_week(1, 0.0), _week(2, 0.0)],
            "goal": "moderate_loss",
        },
    )

    assert response.status_code == 200
    assert response.json()["goals"]["calories"] == 1700


def test_adaptation(client: TestClient) -> None:
    history = [
        _week(number, 0.0, average_calories=1500) for number in range(1, 5)
    ]

    response = client.post(
        "/progress/adaptation",
        json={"history": history, "goal": "moderate_loss", "sex": "male"},
    )

    assert response.status_code == 200
    data = response.json()
    assert data["level"] == "mild"
    assert data["is_adapted"] is True
    assert data["flags"]["weight_stagnant"] is True


def test_record_week_from_daily_entries(
    client: TestClient, progress_repository: InMemoryProgressRepository
) -> None:
    user_id = uuid4()
    entries = [
        {
            "day": (date(2026, 3, 2) + timedelta(days=offset)).isoformat(),
            "macros": {"calories": 1800, "protein_g": 140, "fat_g": 60, "carbs_g": 180},
        }
        for offset in range(7)
    ]

    response = client.post(
        f"/users/{user_id}/progress/weeks",
        json={
            "week_number": 1,
            "entries": entries,
            "target_calories": 2000,
            "fallback_weight_kg": 80,
        },
    )

    assert response.status_code == 200
    data = response.json()
    assert data["days_logged"] == 7
    assert data["calorie_adherence"] == 90.0
    assert data["week_start"] == "2026-03-02"
    assert len(progress_repository.records[user_id]) == 1


def test_record_week_rejects_sparse_week(
    client: TestClient, progress_repository: InMemoryProgressRepository
) -> None:
    user_id = uuid4()
    entries = [
        {
            "day": (date(2026, 3, 2) + timedelta(days=offset)).isoformat(),
            "macros": {"calories": 1800, "protein_g": 140, "fat_g": 60, "carbs_g": 180},
        }
        for offset in range(2)
    ]

    response = client.post(
        f"/users/{user_id}/progress/weeks",
        json={
            "week_number": 1,
            "entries": entries,
            "target_calories": 2000,
            "fallback_weight_kg": 80,
        },
    )

    assert response.status_code == 422
    assert "logged days" in response.json()["detail"]
    assert user_id not in progress_repository.records


def test_daily_targets_rejects_unsupported_meal_count(client: TestClient) -> None:
    for meals_per_day in (1, 6):
        response = client.post(
            "/targets/daily",
            json={"profile": {**PROFILE, "meals_per_day": meals_per_day}},
        )
        assert response.status_code == 422


def test_record_week_requires_inputs(client: TestClient) -> None:
    response = client.post(f"/users/{uuid4()}/progress/weeks", json={"entries": []})

    assert response.status_code == 422


def test_review_then_apply(
    client: TestClient, progress_repository: InMemoryProgressRepository
) -> None:
    user_id = uuid4()
    goals = MacroProfile(calories=2000, protein_g=150, fat_g=67, carbs_g=200)
    progress_repository.goals[user_id] = goals
    for number in (1, 2):
        response = client.post(
            f"/users/{user_id}/progress/weeks", json={"record": _week(number, 0.0)}
        )
        assert response.status_code == 200

    duplicate = client.post(
        f"/users/{user_id}/progress/weeks", json={"record": _week(2, 0.0)}
    )
    assert duplicate.status_code == 422

    review = client.get(
        f"/users/{user_id}/progress/review",
        params={"goal": "moderate_loss", "sex": "male"},
    )
    assert review.status_code == 200
    assert review.json()["proposed_goals"]["calories"] == 1700
    assert review.json()["adaptation"]["level"] == "none"
    assert progress_repository.goals[user_id] == goals

    applied = client.post(
        f"/users/{user_id}/progress/apply",
        json={"goal": "moderate_loss", "sex": "male"},
    )
    assert applied.status_code == 200
    assert applied.json()["current_goals"]["calories"] == 2000
    assert progress_repository.goals[user_id].calories == 1700
