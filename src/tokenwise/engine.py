"""Token engine facade.

One TokenEngine per process owns the result cache, the usage store, the
tokenizer cache and the metrics collector. Everything else is stateless
and delegated to the core modules.
"""

import logging
from collections.abc import Callable
from typing import Any

from pendulum import DateTime

from tokenwise.config.settings import TokenEngineSettings, get_settings
from tokenwise.config.validation import ContextWindowValidation, validate_context_window
from tokenwise.core import metrics as metric_names
from tokenwise.core.cache.prompt_cache import CacheControlResult
from tokenwise.core.cache.prompt_cache import inject_cache_control as _inject_cache_control
from tokenwise.core.cache.result_cache import ResultCache
from tokenwise.core.compaction.models import CompactionResult, CompactionStrategyName, SendFn
from tokenwise.core.compaction.strategy import compact_messages as _compact_messages
from tokenwise.core.context import budget as budget_ops
from tokenwise.core.context.budget import TokenBudget
from tokenwise.core.context.messages import Message
from tokenwise.core.context.safety_margin import is_near_limit as _is_near_limit
from tokenwise.core.context.token_counter import (
    TokenCounter,
    estimate_message_tokens,
    estimate_tokens,
)
from tokenwise.core.metrics import MetricsCollector, MetricsTimer
from tokenwise.core.routing import ModelRoutingDecision
from tokenwise.core.routing import route_to_model as _route_to_model
from tokenwise.core.usage.monitor import UsageMonitor, UsageSummary, project_month_end
from tokenwise.core.usage.reporter import TokenReport, TokenUsage, create_token_report
from tokenwise.core.usage.reporter import calculate_cost as _calculate_cost
from tokenwise.providers.llm.litellm_provider import LiteLLMProvider

logger = logging.getLogger(__name__)


class TokenEngine:
    """
    Budgeting, compaction, routing, caching and usage accounting for one process.

    Args:
        settings: Engine settings; defaults to the global settings
        send_fn: Summarize capability for cheap-tier compaction. When omitted,
            a LiteLLM provider for the preferred provider is created on first use.
        clock: Returns epoch ms; shared by the result cache and usage store
        metrics: Metrics collector; a fresh one is created when omitted
    """

    def __init__(
        self,
        settings: TokenEngineSettings | None = None,
        send_fn: SendFn | None = None,
        clock: Callable[[], int] | None = None,
        metrics: MetricsCollector | None = None,
    ):
        self.settings = settings or get_settings()
        self.result_cache = ResultCache(self.settings.result_cache_ttl_ms, clock=clock)
        self.usage_monitor = UsageMonitor(clock=clock)
        self.token_counter = TokenCounter()
        self.metrics = metrics or MetricsCollector()
        self._clock = clock
        self._send_fn = send_fn

        logger.info(
            f"Token engine initialized: context_window={self.settings.context_window}, "
            f"strategy={self.settings.compaction_strategy}, "
            f"provider={self.settings.preferred_provider}"
        )

    @property
    def send_fn(self) -> SendFn:
        """Summarize capability, creating the default LiteLLM one on first use."""
        if self._send_fn is None:
            self._send_fn = LiteLLMProvider.from_settings(self.settings).as_send_fn()
        return self._send_fn

    # === Budget ===

    def calculate_budget(self, total_context_tokens: int | None = None) -> TokenBudget:
        """Budget for a context window using the configured ratios and margin."""
        return budget_ops.calculate_budget(
            total_context_tokens or self.settings.context_window,
            ratios=self.settings.budget_ratios,
            margin_percent=self.settings.safety_margin_percent,
        )

    def history_fits_budget(self, history_tokens: int, budget: TokenBudget) -> bool:
        return budget_ops.history_fits_budget(history_tokens, budget)

    def tokens_to_free(self, history_tokens: int, budget: TokenBudget) -> int:
        return budget_ops.tokens_to_free(history_tokens, budget)

    def remaining_history_tokens(self, history_tokens: int, budget: TokenBudget) -> int:
        return budget_ops.remaining_history_tokens(history_tokens, budget)

    def is_near_limit(self, used_tokens: int, total_tokens: int | None = None) -> bool:
        """Check utilization against the configured near-limit threshold."""
        total = total_tokens or self.settings.context_window
        near = _is_near_limit(used_tokens, total, self.settings.near_limit_threshold)
        if near:
            logger.warning(f"Context near limit: used={used_tokens}, total={total}")
        return near

    def validate_context_window(self, max_tokens: int | None = None) -> ContextWindowValidation:
        return validate_context_window(max_tokens or self.settings.context_window)

    # === Estimation ===

    def count_tokens(self, text: str, model: str | None = None) -> int:
        """Precise count when a model is given, heuristic estimate otherwise."""
        if model is None:
            return estimate_tokens(text)
        return self.token_counter.count_tokens(text, model)

    def estimate_history_tokens(self, messages: list[Message] | list[dict[str, Any]]) -> int:
        return estimate_message_tokens(messages)

    # === Compaction ===

    async def compact_messages(
        self,
        messages: list[Message] | list[dict[str, Any]],
        tokens_to_free: int,
        send_fn: SendFn | None = None,
        strategy: CompactionStrategyName | None = None,
    ) -> CompactionResult:
        """
        Compact a history using the configured strategy and provider.

        Args:
            messages: Conversation history, oldest first
            tokens_to_free: Deficit from tokens_to_free()
            send_fn: Override for the engine's summarize capability
            strategy: Override for the configured compaction strategy

        Returns:
            CompactionResult
        """
        chosen = strategy or self.settings.compaction_strategy

        with MetricsTimer(self.metrics, metric_names.COMPACTION_SECONDS, {"strategy": chosen}):
            result = await _compact_messages(
                messages,
                tokens_to_free,
                send_fn=send_fn or self.send_fn,
                strategy=chosen,
                preferred_provider=self.settings.preferred_provider,
                max_tool_result_chars=self.settings.max_tool_result_chars,
            )

        self.metrics.increment(metric_names.COMPACTIONS, labels={"tier": result.tier})
        self.metrics.record_histogram(metric_names.COMPACTION_SAVED_TOKENS, result.saved_tokens)
        if result.error is not None:
            self.metrics.increment(metric_names.COMPACTION_FAILURES)

        logger.info(
            f"Compaction finished: tier={result.tier}, saved={result.saved_tokens}, "
            f"requested={tokens_to_free}"
        )
        return result

    # === Routing & prompt caching ===

    def route_to_model(
        self,
        message_text: str,
        has_tools: bool,
        turn_count: int,
        preferred_provider: str | None = None,
    ) -> ModelRoutingDecision:
        return _route_to_model(
            message_text,
            has_tools,
            turn_count,
            preferred_provider or self.settings.preferred_provider,
        )

    def inject_cache_control(
        self, model_id: str, system_prompt: str | None, tools: list[Any] | None
    ) -> CacheControlResult:
        return _inject_cache_control(model_id, system_prompt, tools)

    # === Tool result cache ===

    def get_cached_result(self, tool_name: str, tool_input: Any) -> Any | None:
        """Look up a tool result, counting hits and misses."""
        result = self.result_cache.get(tool_name, tool_input)
        if result is None:
            self.metrics.increment(metric_names.RESULT_CACHE_MISSES, labels={"tool": tool_name})
        else:
            self.metrics.increment(metric_names.RESULT_CACHE_HITS, labels={"tool": tool_name})
        return result

    def set_cached_result(
        self, tool_name: str, tool_input: Any, result: Any, ttl_ms: int | None = None
    ) -> None:
        self.result_cache.set(tool_name, tool_input, result, ttl_ms)

    # === Usage & cost ===

    def record_usage(
        self,
        usage: TokenUsage,
        model: str,
        provider: str,
        session_key: str | None = None,
        compaction: CompactionResult | None = None,
    ) -> TokenReport:
        """
        Price a usage record and append it to the usage store.

        Args:
            usage: Raw token counts from the provider
            model: Model that served the call
            provider: Provider that served the call
            session_key: Optional session the call belongs to
            compaction: Compaction that preceded the call, if any

        Returns:
            The stored TokenReport
        """
        report = create_token_report(
            usage,
            model,
            provider,
            session_key,
            clock=self._clock,
            compaction=compaction.to_dict() if compaction else None,
        )
        self.usage_monitor.record_usage(report)
        self.metrics.increment(metric_names.USAGE_REPORTS, labels={"provider": provider})
        return report

    def get_usage_summary(self, start_ms: int, end_ms: int | None = None) -> UsageSummary:
        return self.usage_monitor.get_usage_summary(start_ms, end_ms)

    def get_today_usage(self, now: DateTime | None = None) -> UsageSummary:
        return self.usage_monitor.get_today_usage(now)

    def get_month_usage(self, now: DateTime | None = None) -> UsageSummary:
        return self.usage_monitor.get_month_usage(now)

    def project_month_end(self, now: DateTime | None = None) -> float:
        """Projected month-end spend from month-to-date usage."""
        return project_month_end(self.get_month_usage(now).total_cost, now)

    def calculate_cost(self, usage: TokenUsage, model: str) -> float:
        return _calculate_cost(usage, model)

    def stats(self) -> dict[str, Any]:
        """Store sizes and metrics for health reporting."""
        return {
            "result_cache": self.result_cache.stats(),
            "usage_reports": self.usage_monitor.size,
            "metrics": self.metrics.export_summary(),
        }

