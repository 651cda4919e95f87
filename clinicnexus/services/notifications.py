# clinicnexus/services/notifications.py
from typing import Any, Optional

import structlog


class AuditLogger:
    """Records workflow side effects (calendar updates, purchase orders, shift records, ...) as structured events."""

    def __init__(self, source: str = "clinicnexus"):
        self.source = source
        self.logger = structlog.get_logger("clinicnexus.audit")

    def log_event(
        self,
        action: str,
        category: str,
        details: Optional[str] = None,
        severity: str = "INFO",
        **fields: Any,
    ) -> None:
        log = self.logger.bind(source=self.source, category=category, **fields)
        if severity.upper() in ("WARNING", "ERROR"):
            log.warning(action, details=details, severity=severity.upper())
        else:
            log.info(action, details=details)


class NotificationSender:
    """Outbound messages to patients and suppliers. Delivery is logged, not transmitted."""

    def __init__(self):
        self.logger = structlog.get_logger("clinicnexus.notifications")

    def notify_patient(
        self,
        patient_id: int,
        name: Optional[str],
        phone: Optional[str],
        email: Optional[str],
        message: str,
    ) -> None:
        channel = "email" if email else ("sms" if phone else "none")
        self.logger.info(
            "patient_notification",
            patient_id=patient_id,
            patient_name=name,
            channel=channel,
            message=message,
        )

    def notify_supplier(self, item_name: str, supplier_info: Optional[str], quantity: int) -> None:
        self.logger.info(
            "supplier_notification",
            item_name=item_name,
            supplier=supplier_info or "unknown",
            quantity=quantity,
        )


audit_logger = AuditLogger()
notification_sender = NotificationSender()
