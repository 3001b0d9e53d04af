# MIT License
# Copyright (c) 2025 Hashborn

"""
Prometheus Metrics Exporter

Metrics:
- Block height
- Tokens created by factories
- Transfers and fees skimmed to collectors
- Reward schedules installed, rewards claimed
- Rejected operations by error code
"""

from prometheus_client import Counter, Gauge, CollectorRegistry

from ..protocol.types.common import EventType
from ..protocol.types.events import Event

# Create registry for metrics
metrics_registry = CollectorRegistry()

# ═══════════════════════════════════════════════════════════════════
# RUNTIME METRICS
# ═══════════════════════════════════════════════════════════════════

block_height = Gauge(
    'autostake_block_height',
    'Height of the last committed operation',
    registry=metrics_registry
)

operations_failed_total = Counter(
    'autostake_operations_failed_total',
    'Operations rejected without state change',
    ['error'],
    registry=metrics_registry
)

events_total = Counter(
    'autostake_events_total',
    'Committed events by type',
    ['event'],
    registry=metrics_registry
)

# ═══════════════════════════════════════════════════════════════════
# LEDGER METRICS
# ═══════════════════════════════════════════════════════════════════

tokens_created_total = Counter(
    'autostake_tokens_created_total',
    'Auto-stake tokens deployed through factories',
    registry=metrics_registry
)

transfer_volume_total = Counter(
    'autostake_transfer_volume_total',
    'Units moved by Transfer events (before fee), per emitting ledger',
    ['token'],
    registry=metrics_registry
)

fees_collected_total = Counter(
    'autostake_fees_collected_total',
    'Units skimmed to fee collectors, per auto-stake token',
    ['token'],
    registry=metrics_registry
)

# ═══════════════════════════════════════════════════════════════════
# REWARD METRICS
# ═══════════════════════════════════════════════════════════════════

schedules_set_total = Counter(
    'autostake_schedules_set_total',
    'Reward schedules installed',
    registry=metrics_registry
)

rewards_claimed_total = Counter(
    'autostake_rewards_claimed_total',
    'Reward asset units paid out by claims, per auto-stake token',
    ['token'],
    registry=metrics_registry
)


def observe_event(event: Event) -> None:
    """Event log subscriber keeping counters in step with committed events."""
    events_total.labels(event=event.event.value).inc()
    block_height.set(event.block)

    if event.event == EventType.TOKEN_CREATED:
        tokens_created_total.inc()
    elif event.event == EventType.TRANSFER:
        fee = int(event.args.get("fee", 0))
        if fee:
            fees_collected_total.labels(token=event.address).inc(fee)
        amount = int(event.args.get("amount", 0))
        if amount:
            transfer_volume_total.labels(token=event.address).inc(amount)
    elif event.event == EventType.REWARDS_SET:
        schedules_set_total.inc()
    elif event.event == EventType.CLAIMED:
        amount = int(event.args.get("amount", 0))
        if amount:
            rewards_claimed_total.labels(token=event.address).inc(amount)


def observe_failure(error: Exception) -> None:
    operations_failed_total.labels(error=getattr(error, "code", type(error).__name__)).inc()


def update_metrics(runtime) -> None:
    """Refresh gauges from runtime state (called on scrape)."""
    block_height.set(runtime.height)
