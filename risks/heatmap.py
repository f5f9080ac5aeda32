"""
Heatmap builder: projects risks onto the 5x5 impact x probability grid.
"""

SCALE = range(1, 6)


def _rating(value):
    # Unset ratings land on the first row/column rather than off the grid.
    return value or 1


def heatmap_position(risk):
    """Return the (impact, probability) cell a risk belongs in."""
    impact = max(
        _rating(risk.financial_impact),
        _rating(risk.regulatory_impact),
        _rating(risk.reputational_impact),
    )
    return impact, _rating(risk.inherent_probability)


def empty_matrix():
    return {
        (impact, probability): {
            'impact': impact,
            'probability': probability,
            'score': impact * probability,
            'risks': [],
        }
        for impact in SCALE
        for probability in SCALE
    }


def build_heatmap(risks):
    """
    Group risks into the 25 heatmap cells.

    ``risks`` is any iterable of objects with the rating attributes plus
    ``ref_no``, ``name``, ``inherent_risk_score`` and ``inherent_rag``.
    Callers are expected to pass active risks only.
    """
    matrix = empty_matrix()
    total = 0

    for risk in risks:
        score = risk.inherent_risk_score
        matrix[heatmap_position(risk)]['risks'].append({
            'ref_no': risk.ref_no,
            'name': risk.name,
            'score': float(score) if score is not None else None,
            'rag': risk.inherent_rag or None,
        })
        total += 1

    return {
        'heatmap': [matrix[(i, p)] for i in SCALE for p in SCALE],
        'total_risks': total,
    }
