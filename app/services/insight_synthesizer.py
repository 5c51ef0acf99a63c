"""
Insight Synthesizer

Turns raw LLM text into structured Insights. The model's content is trusted
but not its formatting: the first JSON object is pulled out of whatever
prose surrounds it and validated. When that fails, equivalent insights are
built deterministically from the aggregated metrics.
"""
import json
from typing import List, Optional, Tuple

from pydantic import ValidationError

from app.models.insights import (
    ActionItems,
    AggregationResult,
    Insights,
    InventoryInsights,
    SalesTrendsInsights,
)
from app.utils.helpers import format_currency
from app.utils.logger import log

TREND_THRESHOLD_PCT = 5.0

FALLBACK_INVENTORY_RECOMMENDATIONS = [
    "Review low stock items before the weekend",
    "Consider promotions for slow-moving inventory",
]
FALLBACK_RECOMMENDED_ACTIONS = ["Review inventory levels", "Check product listings"]
FALLBACK_OPPORTUNITIES = ["Featured products drive more sales"]


class InsightParseError(Exception):
    """
    LLM output could not be turned into Insights.

    Attributes:
        stage: "extract", "json_parse" or "schema"
        errors: human-readable error descriptions
    """

    def __init__(self, stage: str, errors: List[str]):
        self.stage = stage
        self.errors = errors
        super().__init__(f"Insight parsing failed at stage '{stage}': " + "; ".join(errors))


def extract_json_object(text: Optional[str]) -> Optional[str]:
    """
    Return the first balanced top-level {...} object in free text.

    Braces inside JSON strings (including escaped quotes) are ignored.
    Returns None if no complete object is found.
    """
    if not text:
        return None

    start = text.find("{")
    if start == -1:
        return None

    depth = 0
    in_string = False
    escaped = False
    for i in range(start, len(text)):
        ch = text[i]
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue
        if ch == '"':
            in_string = True
        elif ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return text[start:i + 1]
    return None


def parse_insights(raw_text: Optional[str]) -> Insights:
    """
    Extract, parse and validate LLM output.

    Raises:
        InsightParseError: if any step fails
    """
    candidate = extract_json_object(raw_text)
    if candidate is None:
        raise InsightParseError("extract", ["no JSON object found in response"])

    try:
        data = json.loads(candidate)
    except json.JSONDecodeError as exc:
        raise InsightParseError("json_parse", [str(exc)]) from exc

    try:
        return Insights.model_validate(data)
    except ValidationError as exc:
        errors = [
            f"{'.'.join(str(loc) for loc in e['loc'])}: {e['msg']}"
            for e in exc.errors()
        ]
        raise InsightParseError("schema", errors) from exc


def classify_trend(revenue_change: float) -> str:
    if revenue_change > TREND_THRESHOLD_PCT:
        return "up"
    if revenue_change < -TREND_THRESHOLD_PCT:
        return "down"
    return "stable"


def build_fallback_insights(aggregation: AggregationResult, currency_symbol: str = "£") -> Insights:
    """Rule-based insights from the aggregated metrics; never raises"""
    metrics = aggregation.raw_metrics
    change = aggregation.revenue_change
    sign = "+" if change > 0 else ""

    top_seller = aggregation.top_products[0] if aggregation.top_products else None

    return Insights(
        sales_trends=SalesTrendsInsights(
            summary=(
                f"Revenue this week: {format_currency(metrics.current_revenue, currency_symbol)} "
                f"({sign}{change:.1f}% vs last week)"
            ),
            highlights=[
                f"{metrics.order_count} orders this week",
                f"Average order value: {currency_symbol}{metrics.avg_order_value}",
                f"Top seller: {top_seller.name}" if top_seller else "No sales data yet",
            ],
            trend=classify_trend(change),
        ),
        inventory=InventoryInsights(
            summary=(
                f"{len(aggregation.needs_restock)} products need restocking. "
                f"{len(aggregation.slow_moving)} products have no recent sales."
            ),
            alerts=[f"{p.name} has only {p.stock} left" for p in aggregation.needs_restock[:2]],
            recommendations=list(FALLBACK_INVENTORY_RECOMMENDATIONS),
        ),
        action_items=ActionItems(
            urgent=(
                [f"Ship {metrics.unfulfilled_count} pending orders"]
                if metrics.unfulfilled_count > 0
                else ["All orders fulfilled!"]
            ),
            recommended=list(FALLBACK_RECOMMENDED_ACTIONS),
            opportunities=list(FALLBACK_OPPORTUNITIES),
        ),
    )


def synthesize_insights(
    raw_text: Optional[str],
    aggregation: AggregationResult,
    currency_symbol: str = "£"
) -> Tuple[Insights, bool]:
    """
    Parse LLM output, falling back to rule-based insights.

    Returns:
        (insights, from_llm)
    """
    if raw_text is None:
        return build_fallback_insights(aggregation, currency_symbol), False

    try:
        return parse_insights(raw_text), True
    except InsightParseError as e:
        log.warning(f"Could not parse LLM insights, using fallback: {e}")
        return build_fallback_insights(aggregation, currency_symbol), False
