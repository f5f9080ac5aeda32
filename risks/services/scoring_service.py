"""
Scoring service: persists freshly calculated scores for one risk, for every
risk under a theme, or for the whole register.
"""

import logging

from django.conf import settings
from django.db import transaction

from risks.exceptions import NotFound
from risks.models import Risk

logger = logging.getLogger(__name__)


class RiskScoringService:
    """Service for recalculating and storing risk scores."""

    def __init__(self, batch_size=None):
        self.batch_size = batch_size or getattr(settings, 'RISK_RECALCULATE_BATCH_SIZE', 100)

    def rescore(self, risk_id):
        """Lock the risk row, recalculate its scores and save them."""
        with transaction.atomic():
            try:
                risk = Risk.objects.select_for_update().get(pk=risk_id)
            except Risk.DoesNotExist:
                raise NotFound(f"Risk {risk_id} not found.")
            risk.save(update_fields=Risk.SCORE_FIELDS)
        logger.debug(
            f"Rescored risk {risk.ref_no}: inherent={risk.inherent_risk_score} "
            f"residual={risk.residual_risk_score} appetite={risk.appetite_status}"
        )
        return risk

    def rescore_queryset(self, queryset):
        """Rescore every risk in ``queryset`` in primary-key batches."""
        pks = list(queryset.order_by('pk').values_list('pk', flat=True))
        count = 0

        for start in range(0, len(pks), self.batch_size):
            batch = pks[start:start + self.batch_size]
            with transaction.atomic():
                for risk in Risk.objects.select_for_update().filter(pk__in=batch).order_by('pk'):
                    risk.save(update_fields=Risk.SCORE_FIELDS)
                    count += 1

        return count

    def rescore_theme(self, theme):
        count = self.rescore_queryset(Risk.objects.filter(category__theme=theme))
        logger.info(f"Rescored {count} risks under theme {theme.code}")
        return count

    def recalculate_all(self):
        """Recalculate scores for every risk in the register."""
        count = self.rescore_queryset(Risk.objects.all())
        logger.info(f"Recalculated scores for {count} risks")
        return {
            'message': f"Recalculated scores for {count} risks",
            'count': count,
        }
