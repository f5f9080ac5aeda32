"""
Shared helpers for building risk register fixtures in tests.
"""

from risks.models import ControlLibrary, Risk, RiskCategory, RiskControl, RiskTheme


def create_theme(code='OPS', name='Operational', **kwargs):
    """Helper to create a risk theme."""
    kwargs.setdefault('board_appetite', 3)
    return RiskTheme.objects.create(code=code, name=name, **kwargs)


def create_category(theme, code='PROC', name='Process failure', **kwargs):
    """Helper to create a category under ``theme``."""
    return RiskCategory.objects.create(theme=theme, code=code, name=name, **kwargs)


def create_control(code='CTL-001', name='Four-eyes review', **kwargs):
    """Helper to create a control library entry."""
    return ControlLibrary.objects.create(code=code, name=name, **kwargs)


def create_risk(category, ref_no='R-001', name='Payment error', **kwargs):
    """Helper to create a risk; its scores are calculated on save."""
    return Risk.objects.create(category=category, ref_no=ref_no, name=name, **kwargs)


def attach_control(risk, control, effectiveness_score=None, **kwargs):
    """Attach ``control`` to ``risk`` directly through the ORM."""
    return RiskControl.objects.create(
        risk=risk, control=control, effectiveness_score=effectiveness_score, **kwargs
    )
