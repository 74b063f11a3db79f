import gc
import io
from datetime import date, timedelta

import pytest

from config.settings import TestingConfig
from web.app import create_app

CSV_BYTES = b"date,count\n2024-01-01,10\n2024-01-02,20\n2024-01-03,30\n"


def test_index_lists_models(client) -> None:
    res = client.get("/")
    assert res.status_code == 200

    data = res.get_json()
    assert data["app_name"] == "Footfall Forecast"
    assert [m["value"] for m in data["models"]] == ["linear", "ma", "exp"]
    assert data["defaults"]["horizon"] == 14
    assert data["defaults"]["window"] == 7
    assert data["defaults"]["alpha"] == 0.35


def test_config_endpoint(client) -> None:
    res = client.get("/api/config")
    assert res.status_code == 200
    assert res.get_json()["defaults"]["min_training_points"] == 3


def test_load_sample_dataset(client) -> None:
    res = client.post("/api/dataset/sample")
    assert res.status_code == 200
    assert res.get_json()["rows"] == TestingConfig.SAMPLE_DAYS

    state = client.get("/api/dataset").get_json()
    assert state["source"] == "sample"
    assert len(state["rows"]) == TestingConfig.SAMPLE_DAYS
    assert state["rows"][0]["date"] == TestingConfig.SAMPLE_START_DATE
    assert state["chart"]["datasets"][0]["label"] == "Observed footfall"


def test_upload_file(client) -> None:
    res = client.post(
        "/api/dataset/upload",
        data={"file": (io.BytesIO(CSV_BYTES + b"not-a-date,50\n"), "visits.csv")},
        content_type="multipart/form-data",
    )
    assert res.status_code == 200

    data = res.get_json()
    assert data["rows"] == 3
    assert data["skipped"] == 1
    assert data["summary"]["display"]["last_record"] == "30 (on 2024-01-03)"


def test_upload_rejects_unsupported_extension(client) -> None:
    res = client.post(
        "/api/dataset/upload",
        data={"file": (io.BytesIO(CSV_BYTES), "visits.xlsx")},
        content_type="multipart/form-data",
    )
    assert res.status_code == 400
    assert "Unsupported file type" in res.get_json()["error"]


def test_upload_json_text_and_raw_body(client) -> None:
    res = client.post("/api/dataset/upload", json={"text": CSV_BYTES.decode()})
    assert res.status_code == 200
    assert res.get_json()["rows"] == 3

    res = client.post("/api/dataset/upload", data=b"2024-02-01\t5\n2024-02-02\t6",
                      content_type="text/plain")
    assert res.status_code == 200
    assert res.get_json()["rows"] == 2


def test_upload_without_valid_rows(client) -> None:
    res = client.post("/api/dataset/upload", json={"text": "foo,bar\nbaz,qux"})
    assert res.status_code == 400

    data = res.get_json()
    assert data["success"] is False
    assert data["error"] == "No valid rows found in CSV. Expecting date,count"


def test_forecast_after_sample(client) -> None:
    client.post("/api/dataset/sample")
    res = client.post("/api/forecast", json={"model": "ma", "horizon": 10, "window": 5})
    assert res.status_code == 200

    data = res.get_json()
    forecast = data["forecast"]
    assert len(forecast["values"]) == 10
    assert all(v >= 0 for v in forecast["values"])

    last = date.fromisoformat(TestingConfig.SAMPLE_START_DATE) + timedelta(days=TestingConfig.SAMPLE_DAYS - 1)
    expected = [(last + timedelta(days=i)).isoformat() for i in range(1, 11)]
    assert forecast["dates"] == expected
    assert data["chart"]["datasets"][1]["label"] == "Predicted"
    assert data["summary"]["display"]["prediction_summary"].startswith("Next 10 days")


def test_forecast_accepts_form_fields(client) -> None:
    client.post("/api/dataset/upload", json={"text": CSV_BYTES.decode()})
    res = client.post("/api/forecast", data={"model": "exp", "horizon": "3"})
    assert res.status_code == 200

    values = res.get_json()["forecast"]["values"]
    assert len(values) == 3
    assert len(set(values)) == 1


def test_forecast_without_enough_data(client) -> None:
    client.post("/api/dataset/upload", json={"text": "2024-01-01,1\n2024-01-02,2"})
    res = client.post("/api/forecast", json={"model": "linear"})

    assert res.status_code == 400
    assert res.get_json()["error"] == "Need at least 3 data points to train."


def test_export_download(client) -> None:
    client.post("/api/dataset/upload", json={"text": CSV_BYTES.decode()})
    client.post("/api/forecast", json={"model": "linear", "horizon": 2})

    res = client.get("/api/export")
    assert res.status_code == 200
    assert res.mimetype == "text/csv"
    assert "footfall_export.csv" in res.headers["Content-Disposition"]
    assert res.get_data(as_text=True).splitlines() == [
        "date,count",
        "2024-01-01,10",
        "2024-01-02,20",
        "2024-01-03,30",
        "2024-01-04,40",
        "2024-01-05,50",
    ]


def test_export_with_no_data(client) -> None:
    res = client.get("/api/export")
    assert res.status_code == 400
    assert res.get_json()["error"] == "No data to export"


def test_clear_dataset(client) -> None:
    client.post("/api/dataset/sample")
    res = client.post("/api/dataset/clear")
    assert res.status_code == 200
    assert client.get("/api/dataset").get_json()["rows"] == []


def test_sessions_are_isolated(app) -> None:
    first = app.test_client()
    second = app.test_client()

    first.post("/api/dataset/sample")

    assert len(first.get("/api/dataset").get_json()["rows"]) == TestingConfig.SAMPLE_DAYS
    assert second.get("/api/dataset").get_json()["rows"] == []
    assert len(app.extensions["forecast_sessions"]) == 2


def test_unknown_route_returns_json_404(client) -> None:
    res = client.get("/api/nope")
    assert res.status_code == 404
    assert res.get_json() == {"error": "Not found"}


def test_wrong_method_returns_json_405(client) -> None:
    res = client.get("/api/forecast")
    assert res.status_code == 405
    assert res.get_json() == {"error": "Method not allowed"}


def test_upload_rate_limit_survives_garbage_collection(app) -> None:
    client = app.test_client()
    gc.collect()

    res = client.post("/api/dataset/upload", json={"text": CSV_BYTES.decode()})
    assert res.status_code == 200
    assert res.get_json()["rows"] == 3


def test_upload_response_includes_parse_report(client) -> None:
    res = client.post("/api/dataset/upload", json={"text": CSV_BYTES.decode() + "bad,row\n"})
    data = res.get_json()

    assert data["header_detected"] is True
    assert data["rejected"] == [{
        "line_number": 5,
        "line": "bad,row",
        "reason": "unparseable date 'bad'",
    }]


def test_upload_rejects_non_object_json(client) -> None:
    res = client.post("/api/dataset/upload", json=["2024-01-01,10"])
    assert res.status_code == 400
    assert res.get_json()["success"] is False


@pytest.mark.parametrize("body", [["linear"], "linear", 14])
def test_forecast_rejects_non_object_json(client, body) -> None:
    client.post("/api/dataset/sample")
    res = client.post("/api/forecast", json=body)

    assert res.status_code == 400
    data = res.get_json()
    assert data["success"] is False
    assert "JSON object" in data["error"]


def test_forecast_with_empty_body_uses_defaults(client) -> None:
    client.post("/api/dataset/sample")
    res = client.post("/api/forecast")

    assert res.status_code == 200
    assert len(res.get_json()["forecast"]["values"]) == TestingConfig.DEFAULT_HORIZON


class SmallStoreConfig(TestingConfig):
    MAX_SESSIONS = 3


def test_session_store_is_bounded() -> None:
    app = create_app(SmallStoreConfig)
    clients = [app.test_client() for _ in range(10)]
    for c in clients:
        c.get("/api/dataset")

    assert len(app.extensions["forecast_sessions"]) == 3
