import pytest
from fastapi.testclient import TestClient

from asset_palette.core.config import settings
from asset_palette.main import create_app
from asset_palette.models.portfolio import MANUAL_ACCOUNT
from tests.helpers import APPLE, EMAXIS, TOYOTA, TOYOTA_NISA, make_statement

API = settings.API_V1_STR


@pytest.fixture
def client():
    with TestClient(create_app()) as test_client:
        yield test_client


def _upload(client, *files, names=None):
    return client.post(
        f"{API}/portfolios/upload",
        files=[("files", (filename, content, "text/csv")) for filename, content in files],
        data={"names": names} if names else None,
    )


@pytest.fixture
def loaded(client):
    response = _upload(
        client,
        ("husband.csv", make_statement(TOYOTA, APPLE)),
        ("wife.csv", make_statement(TOYOTA_NISA, EMAXIS, encoding="cp932")),
        names=["夫", "妻"],
    )
    assert response.status_code == 200
    return client


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_upload_returns_individual_and_combined(client):
    response = _upload(
        client,
        ("husband.csv", make_statement(TOYOTA, APPLE)),
        ("wife.csv", make_statement(TOYOTA_NISA, EMAXIS)),
        names=["夫", "妻"],
    )

    assert response.status_code == 200
    body = response.json()
    assert [p["name"] for p in body["portfolios"]] == ["夫", "妻"]
    assert body["portfolios"][0]["data"]["total_value"] == 550000
    combined = body["combined"]
    assert combined["total_value"] == 1875000
    assert combined["total_gain_loss"] == 50000 - 12345 - 5000 + 210000
    toyota = combined["aggregated_holdings"][0]
    assert toyota["name"] == "トヨタ自動車"
    assert len(toyota["sub_holdings"]) == 2
    assert sum(item["share"] for item in combined["by_asset_class"]) == pytest.approx(100, abs=0.05)


def test_upload_uses_default_names(client):
    response = _upload(client, ("a.csv", make_statement(TOYOTA)))
    assert response.json()["portfolios"][0]["name"] == "ポートフォリオ 1"


def test_bad_file_is_attributed(loaded):
    response = _upload(
        loaded,
        ("ok.csv", make_statement(TOYOTA)),
        ("broken.csv", b"\x89PNG not a csv"),
    )

    assert response.status_code == 422
    body = response.json()
    assert body["filename"] == "broken.csv"
    assert body["error_code"] == "UNSUPPORTED_FILE"
    assert "保有商品詳細" in body["detail"]

    # The previous session survives a failed upload
    assert [p["name"] for p in loaded.get(f"{API}/portfolios").json()["portfolios"]] == ["夫", "妻"]


def test_missing_column_is_named(client):
    header = '"種別","銘柄","口座","時価評価額[円]"\n'
    response = _upload(client, ("old.csv", make_statement('"国内株式","X","特定","1"', header=header)))
    assert response.status_code == 422
    assert response.json()["error_code"] == "INVALID_FORMAT"
    assert "評価損益[円]" in response.json()["detail"]


def test_oversized_file_rejected(client, monkeypatch):
    monkeypatch.setattr(settings, "MAX_UPLOAD_BYTES", 10)
    response = _upload(client, ("big.csv", make_statement(TOYOTA)))
    assert response.status_code == 413


def test_get_portfolio_by_index(loaded):
    response = loaded.get(f"{API}/portfolios/1")
    assert response.status_code == 200
    body = response.json()
    assert body["index"] == 1
    assert body["name"] == "妻"
    assert body["data"]["total_value"] == 1325000


def test_unknown_portfolio_is_404(loaded):
    assert loaded.get(f"{API}/portfolios/5").status_code == 404


def test_combined_endpoint(loaded):
    response = loaded.get(f"{API}/portfolios/combined")
    assert response.status_code == 200
    assert response.json()["total_value"] == 1875000


def test_rename(loaded):
    response = loaded.patch(f"{API}/portfolios/0", json={"name": "共有"})
    assert response.status_code == 200
    assert response.json()["name"] == "共有"


def test_manual_add_then_update_then_delete(loaded):
    response = loaded.post(
        f"{API}/portfolios/0/holdings",
        json={"type": "投資信託", "name": "ひふみプラス", "value": 100000, "gain_loss": 2000},
    )
    assert response.status_code == 201
    data = response.json()["data"]
    added = next(h for h in data["holdings"] if h["name"] == "ひふみプラス")
    assert added["account"] == MANUAL_ACCOUNT
    assert added["is_manual"] is True
    assert data["total_value"] == 650000
    assert "投資信託" in [item["name"] for item in data["by_account"]]

    response = loaded.put(
        f"{API}/portfolios/0/holdings/{added['id']}",
        json={"type": "投資信託", "name": "ひふみプラス", "value": 150000, "gain_loss": 0},
    )
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["total_value"] == 700000
    assert next(h for h in data["holdings"] if h["id"] == added["id"])["account"] == MANUAL_ACCOUNT

    response = loaded.delete(f"{API}/portfolios/0/holdings/{added['id']}")
    assert response.status_code == 200
    assert response.json()["data"]["total_value"] == 550000

    combined = loaded.get(f"{API}/portfolios/combined").json()
    assert combined["total_value"] == 1875000


def test_update_unknown_holding_is_404(loaded):
    response = loaded.put(
        f"{API}/portfolios/0/holdings/nope",
        json={"type": "国内株式", "name": "X", "value": 1},
    )
    assert response.status_code == 404


def test_delete_unknown_holding_is_404(loaded):
    assert loaded.delete(f"{API}/portfolios/0/holdings/nope").status_code == 404


def test_manual_add_validates_body(loaded):
    response = loaded.post(f"{API}/portfolios/0/holdings", json={"type": "", "name": "X", "value": 1})
    assert response.status_code == 422


def test_reset(loaded):
    assert loaded.delete(f"{API}/portfolios").status_code == 204
    body = loaded.get(f"{API}/portfolios").json()
    assert body["portfolios"] == []
    assert body["combined"]["total_value"] == 0
