"""
LLM Service for AI-Powered Store Insights
Turns the aggregated store summary into structured admin insights using Claude
"""
import asyncio
import json
from typing import Optional

import anthropic
from anthropic import AsyncAnthropic

from app.config import Settings, get_settings
from app.models.insights import DataSummary
from app.utils.logger import log
from app.utils.retry import RetryContext

# Transport failures worth another attempt; everything else fails fast
RETRYABLE_LLM_ERRORS = (
    anthropic.APIConnectionError,  # includes APITimeoutError
    anthropic.RateLimitError,
    anthropic.InternalServerError,
    asyncio.TimeoutError,
)


class InsightGenerationError(Exception):
    """The LLM call itself failed (network, quota, timeout, API error)"""


def build_system_prompt(currency_symbol: str = "£") -> str:
    """System instruction: output schema plus business formatting rules"""
    return f"""You are an expert e-commerce analytics assistant. Analyze the provided store data and generate actionable insights for the store admin.

Your response must be valid JSON with this exact structure:
{{
  "salesTrends": {{
    "summary": "2-3 sentence summary of sales performance",
    "highlights": ["highlight 1", "highlight 2", "highlight 3"],
    "trend": "up" | "down" | "stable"
  }},
  "inventory": {{
    "summary": "2-3 sentence summary of inventory status",
    "alerts": ["alert 1", "alert 2"],
    "recommendations": ["recommendation 1", "recommendation 2"]
  }},
  "actionItems": {{
    "urgent": ["urgent action 1", "urgent action 2"],
    "recommended": ["recommended action 1", "recommended action 2"],
    "opportunities": ["opportunity 1", "opportunity 2"]
  }}
}}

Guidelines:
- Be specific with numbers and product names
- Prioritize actionable insights
- Keep highlights, alerts, and recommendations concise (under 100 characters each)
- Focus on what the admin can do TODAY
- Use {currency_symbol} for currency
- IMPORTANT: When mentioning orders that need to be processed or shipped, ALWAYS include the order number. ALL ORDERS THAT NEED TO BE PROCESSED OR SHIPPED MUST BE LISTED IN THE URGENT ACTION ITEMS SECTION.
- List specific order numbers in urgent action items so the admin can take immediate action
- IF ALL ORDERS ARE FULFILLED, LIST "ALL ORDERS ARE FULFILLED" IN THE URGENT ACTION ITEMS SECTION, WITH THE TOTAL NUMBER OF ORDERS THAT ARE FULFILLED, a green checkmark icon and no other urgent action items.
- INVENTORY ALERTS: In the inventory.alerts array:
  1. FIRST list ALL out-of-stock products (stock = 0) as URGENT with product name (e.g., "OUT OF STOCK: Modern Coffee Table")
  2. THEN list up to 4 low-stock products (stock 1-5) as warnings with product name and stock count (e.g., "Low stock: Velvet Sofa (2 left)")"""


def build_insights_prompt(summary: DataSummary) -> str:
    """Task prompt carrying the serialized store summary"""
    data = json.dumps(summary.to_payload(), indent=2, ensure_ascii=False)
    return f"""Analyze this e-commerce store data and provide insights:

{data}

Generate insights in the required JSON format."""


class LLMService:
    """
    Service for generating AI-powered store insights using Claude
    """

    def __init__(self, settings: Optional[Settings] = None, client: Optional[AsyncAnthropic] = None):
        self.settings = settings or get_settings()
        self.enabled = bool(self.settings.enable_llm_insights and (self.settings.anthropic_api_key or client))
        self.client = None

        if not self.enabled:
            log.info("LLM insights disabled (no API key or feature disabled)")
            return

        # Retries are handled here (RetryContext), not by the SDK
        self.client = client or AsyncAnthropic(
            api_key=self.settings.anthropic_api_key,
            timeout=self.settings.llm_timeout_seconds,
            max_retries=0,
        )
        self.system_prompt = build_system_prompt(self.settings.currency_symbol)
        log.info(f"LLM Service initialized with {self.settings.llm_model}")

    def is_available(self) -> bool:
        return self.enabled

    async def _create_message(self, prompt: str) -> str:
        response = await asyncio.wait_for(
            self.client.messages.create(
                model=self.settings.llm_model,
                max_tokens=self.settings.llm_max_tokens,
                temperature=self.settings.llm_temperature,
                system=self.system_prompt,
                messages=[{"role": "user", "content": prompt}],
            ),
            timeout=self.settings.llm_timeout_seconds,
        )
        return "".join(
            block.text for block in response.content
            if getattr(block, "type", None) == "text"
        )

    async def generate_store_insights(self, summary: DataSummary) -> Optional[str]:
        """
        Ask the LLM for insights on the store summary.

        Returns:
            Raw response text (expected to contain JSON), or None when the
            LLM is disabled.

        Raises:
            InsightGenerationError: if the call fails after retries
        """
        if not self.enabled:
            return None

        prompt = build_insights_prompt(summary)

        async with RetryContext(
            max_attempts=self.settings.llm_max_attempts,
            base_delay=1.0,
            max_delay=10.0,
            retryable_exceptions=RETRYABLE_LLM_ERRORS,
        ) as ctx:
            try:
                text = await ctx.execute(self._create_message, prompt)
            except Exception as e:
                log.error(f"Error generating store insights: {type(e).__name__}: {e} ({ctx.stats.attempts} attempts)")
                raise InsightGenerationError(f"LLM call failed: {type(e).__name__}") from e

        log.info(f"Generated store insights via LLM ({len(text)} chars)")
        return text
