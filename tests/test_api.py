"""Tests for the HTTP API."""

from __future__ import annotations

from pathlib import Path
from typing import Iterator

import pytest
import pytest_mock
from fastapi.testclient import TestClient

from closet.analysis.schemas import AnalysisResult, EditedImage
from closet.api.main import create_app
from closet.config.settings import Settings
from closet.errors import AnalysisError, ProviderError
from closet.storage import Season


@pytest.fixture
def client(tmp_path: Path) -> Iterator[TestClient]:
    app = create_app(Settings(storage_root=str(tmp_path / "storage")))
    with TestClient(app) as test_client:
        yield test_client


def test_health_returns_ok(client: TestClient) -> None:
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_seed_wardrobe_is_served(client: TestClient) -> None:
    pieces = client.get("/pieces").json()

    assert {piece["id"] for piece in pieces} == {"p1", "p2", "p3", "p4"}
    assert pieces[0]["id"] == "p4"
    assert client.get("/outfits/o1").json()["pieceIds"] == ["p1", "p2", "p3"]


def test_create_piece_validates_input(client: TestClient) -> None:
    response = client.post("/pieces", json={"title": "Red Scarf"})

    assert response.status_code == 422
    assert response.json()["detail"] == "An image is required."


def test_piece_lifecycle(client: TestClient) -> None:
    created = client.post("/pieces", json={"title": "Red Scarf", "tags": ["wool"], "images": ["x"]})
    assert created.status_code == 201
    piece = created.json()
    assert piece["id"].startswith("p")
    assert piece["wearHistory"] == []

    updated = client.put(f"/pieces/{piece['id']}", json={"title": "Red Wool Scarf", "season": "Winter"})
    assert updated.status_code == 200
    assert updated.json()["title"] == "Red Wool Scarf"
    assert updated.json()["createdAt"] == piece["createdAt"]

    wear = client.post(f"/pieces/{piece['id']}/wear", json={"notes": "cold day"})
    assert wear.status_code == 201
    assert wear.json()["notes"] == "cold day"

    assert client.delete(f"/pieces/{piece['id']}").status_code == 204
    assert client.get(f"/pieces/{piece['id']}").status_code == 404


def test_outfit_wear_fans_out_and_delete_cascades(client: TestClient) -> None:
    wear = client.post("/outfits/o1/wear")
    assert wear.status_code == 201
    date = wear.json()["date"]

    for piece_id in ("p1", "p2", "p3"):
        history = client.get(f"/pieces/{piece_id}").json()["wearHistory"]
        assert [entry["date"] for entry in history] == [date]

    assert client.delete("/pieces/p2").status_code == 204
    assert client.get("/outfits/o1").json()["pieceIds"] == ["p1", "p3"]
    assert [piece["id"] for piece in client.get("/outfits/o1/pieces").json()] == ["p1", "p3"]


def test_wear_unknown_item_returns_404(client: TestClient) -> None:
    assert client.post("/outfits/missing/wear").status_code == 404
    assert client.post("/pieces/missing/wear").status_code == 404


def test_stats_summary(client: TestClient) -> None:
    client.post("/outfits/o1/wear")

    summary = client.get("/stats").json()

    assert summary["totalWears"] == 3
    assert summary["mostWornOutfit"]["id"] == "o1"
    assert sum(row["wears"] for row in summary["wearsByMonth"]) == 4
    assert summary["recentlyWorn"][0]["type"] in {"piece", "outfit"}


def test_settings_round_trip(client: TestClient) -> None:
    assert client.get("/settings").json() == {
        "provider": "gemini",
        "hasApiKey": False,
        "supportsBackgroundRemoval": True,
    }

    response = client.put("/settings", json={"apiKey": "sk-test", "provider": "openai"})

    assert response.json() == {"provider": "openai", "hasApiKey": True, "supportsBackgroundRemoval": False}


def test_analysis_without_key_is_rejected(client: TestClient) -> None:
    response = client.post("/analysis", json={"image": "QUJD", "mimeType": "image/jpeg"})

    assert response.status_code == 400
    assert "API key is not configured" in response.json()["detail"]


def test_analysis_uses_stored_provider(client: TestClient, mocker: pytest_mock.MockerFixture) -> None:
    analyze = mocker.patch(
        "closet.api.main.analyze_image",
        new=mocker.AsyncMock(
            return_value=AnalysisResult(title="Scarf", color="Red", style="Casual", season=Season.WINTER, tags=["wool"]),
        ),
    )
    client.put("/settings", json={"apiKey": "sk-test", "provider": "openai"})

    response = client.post("/analysis", json={"image": "QUJD", "mimeType": "image/png"})

    assert response.status_code == 200
    assert response.json() == {"title": "Scarf", "color": "Red", "style": "Casual", "season": "Winter", "tags": ["wool"]}
    args = analyze.await_args.args
    assert args[:4] == ("sk-test", "openai", "QUJD", "image/png")


def test_provider_failure_maps_to_bad_gateway(client: TestClient, mocker: pytest_mock.MockerFixture) -> None:
    mocker.patch(
        "closet.api.main.analyze_image",
        new=mocker.AsyncMock(side_effect=ProviderError("Failed to analyze image. Please check your API key and try again.")),
    )
    client.put("/settings", json={"apiKey": "sk-test"})

    response = client.post("/analysis", json={"image": "QUJD"})

    assert response.status_code == 502
    assert response.json()["detail"].startswith("Failed to analyze image")


def test_background_removal_unsupported_for_openai(client: TestClient) -> None:
    client.put("/settings", json={"apiKey": "sk-test", "provider": "openai"})

    response = client.post("/analysis/background", json={"image": "QUJD"})

    assert response.status_code == 400
    assert "not supported" in response.json()["detail"]


def test_background_removal_returns_data_url(client: TestClient, mocker: pytest_mock.MockerFixture) -> None:
    mocker.patch(
        "closet.api.main.remove_background",
        new=mocker.AsyncMock(return_value=EditedImage(image="UE5H", mime_type="image/png")),
    )
    client.put("/settings", json={"apiKey": "g-key"})

    response = client.post("/analysis/background", json={"image": "QUJD"})

    assert response.json()["dataUrl"] == "data:image/png;base64,UE5H"


def test_metrics_endpoint(client: TestClient) -> None:
    client.post("/pieces/p1/wear")

    response = client.get("/metrics")

    assert response.status_code == 200
    assert "wear_logs_total" in response.text


def test_malformed_data_url_is_rejected(client: TestClient) -> None:
    client.put("/settings", json={"apiKey": "g-key"})

    response = client.post("/analysis", json={"image": "data:image/png,abc"})

    assert response.status_code == 422
    assert "base64" in response.json()["detail"]


def test_other_analysis_errors_map_to_bad_request(client: TestClient, mocker: pytest_mock.MockerFixture) -> None:
    mocker.patch("closet.api.main.analyze_image", new=mocker.AsyncMock(side_effect=AnalysisError("Image rejected.")))

    response = client.post("/analysis", json={"image": "QUJD"})

    assert response.status_code == 400
    assert response.json() == {"detail": "Image rejected."}


def test_tags_with_commas_survive(client: TestClient) -> None:
    created = client.post("/pieces", json={"title": "Scarf", "tags": ["black, white", "wool"], "images": ["x"]}).json()
    outfit = client.post(
        "/outfits",
        json={"title": "Monochrome", "pieceIds": [created["id"]], "tags": ["black, white"], "images": ["o"]},
    ).json()

    assert client.get(f"/pieces/{created['id']}").json()["tags"] == ["black, white", "wool"]
    assert outfit["tags"] == ["black, white"]


def test_toggle_outfit_piece(client: TestClient) -> None:
    added = client.post("/outfits/o1/pieces/p4")
    assert added.status_code == 200
    assert added.json()["pieceIds"] == ["p1", "p2", "p3", "p4"]

    removed = client.post("/outfits/o1/pieces/p1")
    assert removed.json()["pieceIds"] == ["p2", "p3", "p4"]

    assert client.post("/outfits/o1/pieces/missing").status_code == 404
    assert client.post("/outfits/missing/pieces/p1").status_code == 404


def test_toggle_last_piece_is_rejected(client: TestClient) -> None:
    for piece_id in ("p1", "p2"):
        client.post(f"/outfits/o1/pieces/{piece_id}")

    response = client.post("/outfits/o1/pieces/p3")

    assert response.status_code == 422
    assert client.get("/outfits/o1").json()["pieceIds"] == ["p3"]


def test_autofill_keeps_brand_and_size(client: TestClient, mocker: pytest_mock.MockerFixture) -> None:
    mocker.patch(
        "closet.api.main.analyze_image",
        new=mocker.AsyncMock(
            return_value=AnalysisResult(
                title="Blue Denim Jacket",
                color="Blue",
                style="Casual",
                season=Season.AUTUMN,
                tags=["denim", "jacket"],
            ),
        ),
    )

    response = client.post(
        "/pieces/autofill",
        json={"image": "QUJD", "mimeType": "image/jpeg", "draft": {"title": "old", "brand": "Levi's", "size": "M"}},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["title"] == "Blue Denim Jacket"
    assert body["brand"] == "Levi's"
    assert body["size"] == "M"
    assert body["season"] == "Autumn"
    assert body["tags"] == ["denim", "jacket"]
    assert body["tagText"] == "denim, jacket"


def test_blank_api_key_clears_setting(client: TestClient) -> None:
    client.put("/settings", json={"apiKey": "sk-test"})

    response = client.put("/settings", json={"apiKey": ""})

    assert response.json()["hasApiKey"] is False
