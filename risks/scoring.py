"""
Risk scoring engine.

Turns a risk's impact ratings, probability and the effectiveness of its
attached controls into the derived score fields stored on the risk:
inherent score and RAG, residual score and RAG, and appetite status.

Everything here is pure arithmetic over already-loaded values so it can be
called from model saves, bulk recalculation and tests alike.
"""

from collections import namedtuple
from decimal import Decimal, ROUND_HALF_UP

from risks.enums import AppetiteStatus, RAGStatus


DEFAULT_BOARD_APPETITE = 3
DEFAULT_PROBABILITY = 1

GREEN_MAX = Decimal('4')
AMBER_MAX = Decimal('9')

SCORE_PLACES = Decimal('0.01')


RiskScores = namedtuple('RiskScores', [
    'inherent_risk_score',
    'inherent_rag',
    'residual_risk_score',
    'residual_rag',
    'appetite_status',
])


def _to_decimal(value):
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def classify_rag(score):
    """Map a score onto Green / Amber / Red. Blue is never produced here."""
    score = _to_decimal(score)
    if score <= GREEN_MAX:
        return RAGStatus.GREEN
    elif score <= AMBER_MAX:
        return RAGStatus.AMBER
    return RAGStatus.RED


def inherent_impact(financial_impact, regulatory_impact, reputational_impact):
    """Worst of the three impact ratings, unset ratings counting as 0."""
    return max(
        financial_impact or 0,
        regulatory_impact or 0,
        reputational_impact or 0,
    )


def control_effectiveness(effectiveness_scores):
    """
    Mean effectiveness of the controls that have a recorded score.

    Controls without a score are ignored; when none has one the result is 0.
    """
    recorded = [_to_decimal(s) for s in effectiveness_scores if s is not None]
    if not recorded:
        return Decimal('0')
    return sum(recorded) / len(recorded)


def residual_score(inherent, effectiveness_scores):
    """``inherent * (1 - mean effectiveness / 100)``, computed with one division."""
    recorded = [_to_decimal(s) for s in effectiveness_scores if s is not None]
    if not recorded:
        return _to_decimal(inherent)
    scale = 100 * len(recorded)
    return _to_decimal(inherent) * (scale - sum(recorded)) / scale


def appetite_status(residual_risk_score, board_appetite):
    if board_appetite is None:
        board_appetite = DEFAULT_BOARD_APPETITE
    if _to_decimal(residual_risk_score) <= _to_decimal(board_appetite):
        return AppetiteStatus.OK
    return AppetiteStatus.OUTSIDE


def calculate_scores(financial_impact=None, regulatory_impact=None,
                     reputational_impact=None, inherent_probability=None,
                     effectiveness_scores=(), board_appetite=None):
    """
    Compute the derived score fields for a single risk.

    RAG and appetite are decided on the exact residual; only the returned
    scores are quantised to two decimal places, the precision they are
    stored with.
    """
    impact = inherent_impact(financial_impact, regulatory_impact, reputational_impact)
    probability = inherent_probability or DEFAULT_PROBABILITY

    inherent = Decimal(impact * probability)

    residual = residual_score(inherent, effectiveness_scores)

    return RiskScores(
        inherent_risk_score=inherent.quantize(SCORE_PLACES),
        inherent_rag=classify_rag(inherent),
        residual_risk_score=residual.quantize(SCORE_PLACES, rounding=ROUND_HALF_UP),
        residual_rag=classify_rag(residual),
        appetite_status=appetite_status(residual, board_appetite),
    )
