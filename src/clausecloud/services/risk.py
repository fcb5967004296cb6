"""
Risk-score arithmetic and portfolio figures.

The model computes ``riskScore`` itself; these helpers only recompute what can
be checked from the returned issue lists, and never rewrite the analysis.
"""

import re
from typing import Any

import structlog

from clausecloud.models.contract import ContractRecord, RiskLevel

logger = structlog.get_logger(__name__)

CRITICAL_WEIGHT = 3.0
MODERATE_WEIGHT = 1.5
RED_LINE_WEIGHT = 5.0

LOW_MAX = 5
HIGH_MIN = 13

_MONEY_RE = re.compile(r"(\d[\d,]*(?:\.\d+)?)\s?([kKmM]\b)?")


def compute_risk_score(
    critical_issues: int,
    moderate_concerns: int,
    red_line_violations: int = 0,
) -> float:
    """criticalIssues×3 + moderateConcerns×1.5 + redLineViolations×5."""
    return (
        critical_issues * CRITICAL_WEIGHT
        + moderate_concerns * MODERATE_WEIGHT
        + red_line_violations * RED_LINE_WEIGHT
    )


def risk_level_for_score(score: float) -> RiskLevel:
    # Scores between 5 and 6 (e.g. 5.5) count as medium
    if score <= LOW_MAX:
        return RiskLevel.LOW
    if score >= HIGH_MIN:
        return RiskLevel.HIGH
    return RiskLevel.MEDIUM


def score_floor(analysis: dict[str, Any]) -> float:
    """
    Lowest score consistent with the issue lists.

    Red-line violations are not reported separately by the model, so they
    can only raise the score above this floor.
    """
    critical = analysis.get("criticalIssues")
    moderate = analysis.get("moderateConcerns")
    return compute_risk_score(
        len(critical) if isinstance(critical, list) else 0,
        len(moderate) if isinstance(moderate, list) else 0,
    )


def check_risk_score(analysis: dict[str, Any]) -> bool:
    """
    Compare the reported score with the floor from the issue counts.

    Returns False (and logs) when the model under-reported; the analysis is
    left untouched either way.
    """
    reported = analysis.get("riskScore")
    if isinstance(reported, bool) or not isinstance(reported, (int, float)):
        logger.warning("risk_score_missing", reported=reported)
        return False

    floor = score_floor(analysis)
    if reported < floor:
        logger.warning(
            "risk_score_below_floor",
            reported=reported,
            floor=floor,
            reported_level=analysis.get("riskLevel"),
            floor_level=risk_level_for_score(floor).value,
        )
        return False
    return True


def parse_money(value: Any) -> float:
    """
    First monetary amount in a free-text value such as ``"$50,000/year"``.

    ``k``/``m`` suffixes are expanded. Returns 0.0 when nothing parses.
    """
    if isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        return float(value)
    if not isinstance(value, str):
        return 0.0

    match = _MONEY_RE.search(value)
    if not match:
        return 0.0

    amount = float(match.group(1).replace(",", ""))
    suffix = (match.group(2) or "").lower()
    if suffix == "k":
        amount *= 1_000
    elif suffix == "m":
        amount *= 1_000_000
    return amount


def portfolio_metrics(contracts: list[ContractRecord]) -> dict[str, Any]:
    """Totals for the portfolio overview."""
    total = len(contracts)
    average = sum(c.risk_score for c in contracts) / total if total else 0.0
    return {
        "total_contracts": total,
        "average_risk": round(average, 1),
        "needs_review": sum(1 for c in contracts if c.risk_level == RiskLevel.HIGH.value),
        "total_value": sum(parse_money(c.analysis.get("value")) for c in contracts),
    }
