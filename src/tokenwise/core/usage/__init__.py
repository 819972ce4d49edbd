"""Usage monitoring and cost reporting."""

from tokenwise.core.usage.monitor import (
    UsageBucket,
    UsageMonitor,
    UsageSummary,
    project_month_end,
)
from tokenwise.core.usage.reporter import (
    MODEL_PRICING,
    ModelPricing,
    TokenReport,
    TokenUsage,
    calculate_cost,
    create_token_report,
    resolve_pricing,
)

__all__ = [
    "UsageMonitor",
    "UsageSummary",
    "UsageBucket",
    "project_month_end",
    "TokenUsage",
    "TokenReport",
    "ModelPricing",
    "MODEL_PRICING",
    "resolve_pricing",
    "calculate_cost",
    "create_token_report",
]
