"""Context management utilities: estimation, budgets and message model."""

from tokenwise.core.context.budget import (
    DEFAULT_BUDGET_RATIOS,
    BudgetRatios,
    TokenBudget,
    calculate_budget,
    history_fits_budget,
    remaining_history_tokens,
    tokens_to_free,
)
from tokenwise.core.context.messages import (
    Blocks,
    ContentBlock,
    ImageBlock,
    Message,
    MessageContent,
    PlainText,
    TextBlock,
    ToolResultBlock,
    ToolUseBlock,
    to_messages,
)
from tokenwise.core.context.pre_truncation import (
    DEFAULT_MAX_TOOL_RESULT_CHARS,
    context_relative_limit,
    pre_truncate_tool_result,
    truncate,
)
from tokenwise.core.context.safety_margin import (
    effective_context_window,
    is_near_limit,
    safety_margin_tokens,
)
from tokenwise.core.context.token_counter import (
    TokenCounter,
    estimate_message_tokens,
    estimate_tokens,
)

__all__ = [
    "TokenCounter",
    "estimate_tokens",
    "estimate_message_tokens",
    "effective_context_window",
    "safety_margin_tokens",
    "is_near_limit",
    "BudgetRatios",
    "DEFAULT_BUDGET_RATIOS",
    "TokenBudget",
    "calculate_budget",
    "history_fits_budget",
    "tokens_to_free",
    "remaining_history_tokens",
    "Message",
    "MessageContent",
    "PlainText",
    "Blocks",
    "ContentBlock",
    "TextBlock",
    "ImageBlock",
    "ToolUseBlock",
    "ToolResultBlock",
    "to_messages",
    "DEFAULT_MAX_TOOL_RESULT_CHARS",
    "truncate",
    "pre_truncate_tool_result",
    "context_relative_limit",
]
