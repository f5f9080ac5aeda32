import logging

from django.db.models.signals import post_delete, post_save
from django.dispatch import receiver

from .models import Risk, RiskControl
from .services.scoring_service import RiskScoringService

logger = logging.getLogger(__name__)


@receiver(post_save, sender=RiskControl)
def rescore_risk_on_control_save(sender, instance, raw=False, **kwargs):
    """Rescore the owning risk whenever one of its controls is saved."""
    if raw:
        # Fixture loading; the risk row may not exist yet.
        return
    RiskScoringService().rescore(instance.risk_id)


@receiver(post_delete, sender=RiskControl)
def rescore_risk_on_control_delete(sender, instance, origin=None, **kwargs):
    """
    Rescore the owning risk after a control is detached.

    Skipped when the delete cascades from the risk itself.
    """
    if isinstance(origin, Risk) or getattr(origin, 'model', None) is Risk:
        logger.debug(f"Skipping rescore of risk {instance.risk_id}: risk is being deleted")
        return
    if not Risk.objects.filter(pk=instance.risk_id).exists():
        return
    RiskScoringService().rescore(instance.risk_id)
