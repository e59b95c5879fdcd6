"""
LLM usage tracker. Records every assistant call (real or mock) so admins
can see volume, cost and latency per agent.
"""
import time
import json
import logging
from collections import deque
from dataclasses import dataclass, asdict
from datetime import datetime, timedelta
from typing import Dict, List, Optional

logger = logging.getLogger("genie.llm_tracker")

MAX_ENTRIES = 1000

# USD per 1M tokens (Mistral list prices, approximate)
COST_PER_1M = {
    "mistral-large-latest": (2.0, 6.0),
    "mistral-small-latest": (0.2, 0.6),
    "mock": (0.0, 0.0),
}
DEFAULT_COST = (2.0, 6.0)

_usage_logs = deque(maxlen=MAX_ENTRIES)


@dataclass
class LLMUsageEntry:
    timestamp: str
    agent_name: str
    model: str
    input_tokens: int
    output_tokens: int
    latency_ms: int
    cost_usd: float
    status: str  # success / error
    error_message: str = ""
    metadata: str = ""  # JSON


def estimate_cost(model: str, input_tokens: int, output_tokens: int) -> float:
    input_rate, output_rate = COST_PER_1M.get(model, DEFAULT_COST)
    return round(input_tokens / 1_000_000 * input_rate + output_tokens / 1_000_000 * output_rate, 6)


def log_usage(
    agent_name: str,
    model: str,
    input_tokens: int = 0,
    output_tokens: int = 0,
    latency_ms: int = 0,
    status: str = "success",
    error_message: str = "",
    metadata: Optional[dict] = None,
):
    entry = LLMUsageEntry(
        timestamp=datetime.utcnow().isoformat(),
        agent_name=agent_name,
        model=model,
        input_tokens=input_tokens,
        output_tokens=output_tokens,
        latency_ms=latency_ms,
        cost_usd=estimate_cost(model, input_tokens, output_tokens),
        status=status,
        error_message=error_message,
        metadata=json.dumps(metadata or {}),
    )
    _usage_logs.append(asdict(entry))
    logger.info(
        f"LLM call: {agent_name} | {model} | {input_tokens + output_tokens} tokens | "
        f"${entry.cost_usd:.4f} | {latency_ms}ms | {status}"
    )


def get_usage_report(days: int = 7) -> Dict:
    cutoff = (datetime.utcnow() - timedelta(days=days)).isoformat()
    recent = [e for e in _usage_logs if e["timestamp"] >= cutoff]

    by_agent = {}
    for e in recent:
        stats = by_agent.setdefault(e["agent_name"], {"calls": 0, "tokens": 0, "cost_usd": 0.0, "errors": 0})
        stats["calls"] += 1
        stats["tokens"] += e["input_tokens"] + e["output_tokens"]
        stats["cost_usd"] = round(stats["cost_usd"] + e["cost_usd"], 4)
        if e["status"] == "error":
            stats["errors"] += 1

    total_calls = len(recent)
    return {
        "period_days": days,
        "total_calls": total_calls,
        "total_tokens": sum(e["input_tokens"] + e["output_tokens"] for e in recent),
        "total_cost_usd": round(sum(e["cost_usd"] for e in recent), 4),
        "avg_latency_ms": round(sum(e["latency_ms"] for e in recent) / max(total_calls, 1)),
        "error_count": sum(1 for e in recent if e["status"] == "error"),
        "agent_breakdown": by_agent,
        "recent_calls": recent[-20:],
    }


def get_all_logs(limit: int = 100) -> List[Dict]:
    return list(_usage_logs)[-limit:]


class LLMCallTimer:
    """Times an LLM call and logs it on exit, marking it failed if it raised."""

    def __init__(self, agent_name: str, model: str):
        self.agent_name = agent_name
        self.model = model
        self.input_tokens = 0
        self.output_tokens = 0
        self._start = 0.0

    def __enter__(self):
        self._start = time.time()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        log_usage(
            agent_name=self.agent_name,
            model=self.model,
            input_tokens=self.input_tokens,
            output_tokens=self.output_tokens,
            latency_ms=int((time.time() - self._start) * 1000),
            status="error" if exc_type else "success",
            error_message=str(exc_val) if exc_val else "",
        )
        return False
