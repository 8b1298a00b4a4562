import csv

from telemetry.metrics import estimate_cost, extract_usage_tokens, log_metric, metrics_csv_path, start_timer


def test_rows_are_appended_to_csv():
    log_metric("llm", "openai/gpt-4o-mini", tokens_in=1000, tokens_out=1000, latency_ms=12.3456)
    start_timer("maps", "geocode").done(status="error")

    with metrics_csv_path().open(newline="", encoding="utf-8") as handle:
        rows = list(csv.DictReader(handle))

    assert [row["component"] for row in rows] == ["llm", "maps"]
    assert rows[0]["cost_usd"] == "0.00075"
    assert rows[0]["latency_ms"] == "12.346"
    assert rows[1]["status"] == "error"
    assert rows[1]["tokens_in"] == ""


def test_estimate_cost_unknown_model():
    assert estimate_cost("someone/unknown-model", 10, 10) is None
    assert estimate_cost(None, 10, 10) is None


def test_extract_usage_tokens():
    assert extract_usage_tokens({"usage": {"prompt_tokens": 7, "completion_tokens": 3}}) == (7, 3)
    assert extract_usage_tokens({"choices": []}) == (None, None)
