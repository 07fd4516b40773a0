"""
Notification emitter.

Writes a SmartAlert row and its outbox event in the caller's session, so an
alert exists if and only if the transition that raised it committed.
Delivery to chat adapters happens later, in the outbox dispatcher.
"""

import logging
from datetime import datetime, date
from typing import Optional, Dict, Any

from src.database.models import SmartAlertDB
from src.database.repositories.notifications import AlertRepository, OutboxRepository
from src.models.alerts import SmartAlert, AlertSeverity, AlertType
from src.utils.datetime_utils import Clock, resolve_now

logger = logging.getLogger(__name__)

ALERT_EVENT = "smart_alert"


class NotificationEmitter:
    """Raises structured alerts for the notification layer."""

    def __init__(self, session, clock: Optional[Clock] = None):
        self.session = session
        self.clock = clock
        self.alerts = AlertRepository(session)
        self.outbox = OutboxRepository(session)

    async def emit(
        self,
        organization_id: str,
        alert: SmartAlert,
        now: Optional[datetime] = None,
    ) -> Optional[SmartAlertDB]:
        """
        Store an alert and queue it for delivery.

        Returns None when an alert with the same dedupe key already exists.
        """
        if alert.dedupe_key and await self.alerts.exists(alert.dedupe_key):
            logger.debug(f"Alert {alert.dedupe_key} already emitted, skipping")
            return None

        moment = resolve_now(self.clock, now)
        row = await self.alerts.add({
            "organization_id": organization_id,
            "target_user_id": alert.target_user_id,
            "alert_type": alert.alert_type.value,
            "severity": alert.severity.value,
            "title": alert.title,
            "message": alert.message,
            "actionable": alert.actionable,
            "is_read": False,
            "dedupe_key": alert.dedupe_key,
            "created_at": moment,
        })

        payload: Dict[str, Any] = {
            "alert_id": row.id,
            "alert_type": alert.alert_type.value,
            "severity": alert.severity.value,
            "title": alert.title,
            "message": alert.message,
            "target_user_id": alert.target_user_id,
            "actionable": alert.actionable,
        }
        await self.outbox.add(organization_id, ALERT_EVENT, payload, moment)

        logger.info(f"📣 {alert.alert_type.value} alert for {alert.target_user_id} ({organization_id})")
        return row

    # ==================== WORKFLOW ALERTS ====================

    async def validation_request(self, organization_id: str, task, executor_id: str, now=None):
        """Ask the leader of a collaborative task to validate it."""
        return await self.emit(organization_id, SmartAlert(
            alert_type=AlertType.VALIDATION_REQUEST,
            severity=AlertSeverity.IMPORTANT,
            title="✅ Validación pendiente",
            message=f"Hay una tarea pendiente de tu validación: \"{task.title}\"",
            target_user_id=task.leader_id,
            actionable=True,
        ), now)

    async def task_validated(self, organization_id: str, task, executor_id: str, now=None):
        return await self.emit(organization_id, SmartAlert(
            alert_type=AlertType.TASK_VALIDATED,
            severity=AlertSeverity.CELEBRATION,
            title="🎉 Tarea Validada",
            message=f"El líder ha validado tu tarea \"{task.title}\"",
            target_user_id=executor_id,
            actionable=False,
        ), now)

    async def task_changed_by_leader(self, organization_id: str, task, old_title: str, reason: str, now=None):
        return await self.emit(organization_id, SmartAlert(
            alert_type=AlertType.TASK_CHANGED_BY_LEADER,
            severity=AlertSeverity.IMPORTANT,
            title="🔄 Tarea cambiada por tu líder",
            message=f"\"{old_title}\" ahora es \"{task.title}\". Motivo: {reason}",
            target_user_id=task.owner_user_id,
            actionable=False,
        ), now)

    async def week_backlog(
        self,
        organization_id: str,
        user_id: str,
        phase: int,
        week: int,
        carried_count: int,
        now=None,
    ):
        """One backlog reminder per user, phase and week."""
        return await self.emit(organization_id, SmartAlert(
            alert_type=AlertType.WEEK_BACKLOG,
            severity=AlertSeverity.URGENT,
            title="⏰ Tareas pendientes de semanas anteriores",
            message=f"Tienes {carried_count} tarea(s) de semanas anteriores sin completar en la fase {phase}",
            target_user_id=user_id,
            actionable=True,
            dedupe_key=f"week_backlog:{organization_id}:{user_id}:{phase}:{week}",
        ), now)

    async def objective_carried_over(self, organization_id: str, objective, week_start: date, now=None):
        return await self.emit(organization_id, SmartAlert(
            alert_type=AlertType.OBJECTIVE_CARRIED_OVER,
            severity=AlertSeverity.URGENT,
            title="📌 Objetivo arrastrado",
            message=(
                f"El objetivo \"{objective.title}\" no se completó y pasa a la semana del "
                f"{week_start.isoformat()}. Complétalo antes de generar uno nuevo"
            ),
            target_user_id=objective.owner_user_id,
            actionable=True,
            dedupe_key=f"objective_carried:{objective.id}:{week_start.isoformat()}",
        ), now)

    async def objective_completed(self, organization_id: str, objective, now=None):
        return await self.emit(organization_id, SmartAlert(
            alert_type=AlertType.OBJECTIVE_COMPLETED,
            severity=AlertSeverity.CELEBRATION,
            title="🏆 Objetivo completado",
            message=f"Has alcanzado todos los resultados clave de \"{objective.title}\"",
            target_user_id=objective.owner_user_id,
            actionable=False,
            dedupe_key=f"objective_completed:{objective.id}",
        ), now)

    async def catalog_degraded(self, organization_id: str, target_user_id: str, phase: int, warnings, now=None):
        return await self.emit(organization_id, SmartAlert(
            alert_type=AlertType.CATALOG_DEGRADED,
            severity=AlertSeverity.INFO,
            title=f"⚠️ Fase {phase}: tareas sin líder",
            message="; ".join(warnings),
            target_user_id=target_user_id,
            actionable=False,
        ), now)
