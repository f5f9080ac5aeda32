"""
Control attachment service.

Attaching, updating or detaching a control changes the parent risk's
residual score. The rescoring itself is done by the ``RiskControl`` signal
handlers in ``risks.signals`` so that it runs inside the same transaction as
the change, whichever code path made it.
"""

import logging

from django.db import transaction

from risks.exceptions import DuplicateControl, HasDependents
from risks.models import Risk, RiskControl

logger = logging.getLogger(__name__)


class ControlAttachmentService:
    """Service for managing the controls attached to a risk."""

    def _lock_risk(self, risk):
        return Risk.objects.select_for_update().get(pk=risk.pk)

    def attach(self, risk, data):
        """Attach a library control to ``risk``; a control may be attached once."""
        data = dict(data)
        control = data.pop('control')
        with transaction.atomic():
            self._lock_risk(risk)
            if RiskControl.objects.filter(risk=risk, control=control).exists():
                logger.info(f"Control {control.code} already attached to risk {risk.ref_no}")
                raise DuplicateControl()
            risk_control = RiskControl.objects.create(risk=risk, control=control, **data)
        logger.info(f"Attached control {control.code} to risk {risk.ref_no}")
        risk.refresh_from_db()
        return risk_control

    def update(self, risk_control, data):
        with transaction.atomic():
            self._lock_risk(risk_control.risk)
            for field, value in data.items():
                setattr(risk_control, field, value)
            risk_control.save()
        risk_control.risk.refresh_from_db()
        return risk_control

    def detach(self, risk_control):
        risk = risk_control.risk
        with transaction.atomic():
            self._lock_risk(risk)
            risk_control.delete()
        logger.info(f"Detached control {risk_control.control_id} from risk {risk.ref_no}")
        risk.refresh_from_db()
        return risk

    def delete_library_control(self, control):
        """Delete a control library entry that no risk uses."""
        with transaction.atomic():
            if control.risk_controls.exists():
                logger.info(f"Refused to delete control {control.code}: it is assigned to risks")
                raise HasDependents('Cannot delete control that is assigned to risks.')
            control.delete()
