from __future__ import annotations

import csv
import os
import threading
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional, Tuple

from supabase import Client, create_client

from telemetry.logging_utils import get_logger

logger = get_logger(__name__)

DEFAULT_METRICS_DIR = Path(__file__).resolve().parent.parent / "metrics"
CSV_NAME = "usage_log.csv"
CSV_COLUMNS = [
    "timestamp",
    "component",
    "model_or_tool",
    "tokens_in",
    "tokens_out",
    "latency_ms",
    "cost_usd",
    "status",
]

# Approximate per-1K token pricing in USD for the models we route to.
MODEL_PRICING_PER_1K = {
    "meta-llama/llama-3.3-70b-instruct:free": {"input": 0.0, "output": 0.0},
    "meta-llama/llama-3.3-70b-instruct": {"input": 0.00012, "output": 0.0003},
    "openai/gpt-4o-mini": {"input": 0.00015, "output": 0.0006},
    "openai/gpt-4o": {"input": 0.005, "output": 0.015},
}

_csv_lock = threading.Lock()
_supabase_client: Optional[Client] = None


def metrics_csv_path() -> Path:
    return Path(os.getenv("METRICS_DIR") or DEFAULT_METRICS_DIR) / CSV_NAME


def _get_supabase_client() -> Optional[Client]:
    """Lazily build a Supabase client when the env vars are present."""
    global _supabase_client
    if _supabase_client is not None:
        return _supabase_client
    url = os.getenv("SUPABASE_URL")
    key = os.getenv("SUPABASE_SERVICE_ROLE_KEY")
    if not url or not key:
        return None
    try:
        _supabase_client = create_client(url, key)
    except Exception as exc:
        logger.warning("metrics_supabase_unavailable", extra={"error": str(exc)[:200]})
        _supabase_client = None
    return _supabase_client


def estimate_cost(model: Optional[str], tokens_in: Optional[int], tokens_out: Optional[int]) -> Optional[float]:
    """Rough USD cost from static per-1K token pricing."""
    if model is None:
        return None
    pricing = MODEL_PRICING_PER_1K.get(model.lower())
    if pricing is None:
        return None
    cost = 0.0
    if tokens_in:
        cost += (tokens_in / 1000.0) * pricing["input"]
    if tokens_out:
        cost += (tokens_out / 1000.0) * pricing["output"]
    return round(cost, 6)


def extract_usage_tokens(payload: Any) -> Tuple[Optional[int], Optional[int]]:
    """Pull prompt/completion token counts from a chat-completion body."""
    usage = payload.get("usage") if isinstance(payload, dict) else getattr(payload, "usage", None)
    if not usage:
        return None, None
    if isinstance(usage, dict):
        return usage.get("prompt_tokens"), usage.get("completion_tokens")
    return getattr(usage, "prompt_tokens", None), getattr(usage, "completion_tokens", None)


def _append_csv_row(row: dict) -> None:
    path = metrics_csv_path()
    with _csv_lock:
        path.parent.mkdir(parents=True, exist_ok=True)
        write_header = not path.exists()
        with path.open("a", newline="", encoding="utf-8") as f:
            writer = csv.DictWriter(f, fieldnames=CSV_COLUMNS)
            if write_header:
                writer.writeheader()
            writer.writerow({k: ("" if v is None else v) for k, v in row.items()})


def log_metric(
    component: str,
    model_or_tool: Optional[str],
    *,
    tokens_in: Optional[int] = None,
    tokens_out: Optional[int] = None,
    latency_ms: Optional[float] = None,
    cost_usd: Optional[float] = None,
    status: str = "ok",
) -> None:
    """Persist a usage row to CSV and Supabase; failures are logged, never raised."""
    row = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "component": component,
        "model_or_tool": model_or_tool or "",
        "tokens_in": tokens_in,
        "tokens_out": tokens_out,
        "latency_ms": round(latency_ms, 3) if latency_ms is not None else None,
        "cost_usd": cost_usd if cost_usd is not None else estimate_cost(model_or_tool, tokens_in, tokens_out),
        "status": status,
    }

    try:
        _append_csv_row(row)
    except OSError as exc:
        logger.warning("metrics_csv_write_failed", extra={"error": str(exc)[:200]})

    client = _get_supabase_client()
    if client is not None:
        try:
            client.table("metrics").insert(row).execute()
        except Exception as exc:
            logger.warning("metrics_supabase_write_failed", extra={"error": str(exc)[:200]})


@dataclass
class MetricTimer:
    component: str
    model_or_tool: Optional[str]
    _start: float = field(default_factory=time.perf_counter)

    def done(
        self,
        *,
        tokens_in: Optional[int] = None,
        tokens_out: Optional[int] = None,
        status: str = "ok",
    ) -> float:
        latency_ms = (time.perf_counter() - self._start) * 1000
        log_metric(
            self.component,
            self.model_or_tool,
            tokens_in=tokens_in,
            tokens_out=tokens_out,
            latency_ms=latency_ms,
            status=status,
        )
        return latency_ms


def start_timer(component: str, model_or_tool: Optional[str]) -> MetricTimer:
    """Measure elapsed time for one external call and record it on ``done``."""
    return MetricTimer(component=component, model_or_tool=model_or_tool)
