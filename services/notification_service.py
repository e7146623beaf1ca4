"""
Envio de notificações ligadas a um apoio.

O envio de e-mail em si é externo: o serviço registra a notificação no
histórico e repassa para um dispatcher (por padrão, apenas um log estruturado).
"""
from datetime import datetime
from database import db
from models.contribution import Contribution
from models.notification import ContributionNotification
from services.notification_eligibility import PENDING_REFUND_TEMPLATE
from security import logger


def log_dispatcher(notification, user, contribution):
    """Dispatcher padrão: apenas registra o envio no log"""
    logger.info(
        "notification_dispatched",
        template=notification.template_name,
        recipient=user.email,
        contribution_id=contribution.id
    )


class NotificationService:
    def __init__(self, dispatcher=None):
        self.dispatcher = dispatcher or log_dispatcher

    def notify(self, template_name, user, contribution, options=None):
        """Registra e envia uma notificação"""
        options = options or {}
        notification = ContributionNotification(
            contribution_id=contribution.id,
            user_id=user.id,
            template_name=template_name,
            from_email=options.get('from_email'),
            extra=options
        )
        db.session.add(notification)
        db.session.flush()

        self.dispatcher(notification, user, contribution)
        logger.info(
            "notification_sent",
            template=template_name,
            user_id=user.id,
            contribution_id=contribution.id
        )
        return notification

    def notify_once(self, template_name, user, contribution, options=None):
        """Envia a notificação apenas se ela ainda não foi enviada ao usuário"""
        already_sent = ContributionNotification.query.filter_by(
            template_name=template_name,
            user_id=user.id,
            contribution_id=contribution.id
        ).first()
        if already_sent:
            logger.info(
                "notification_skipped",
                template=template_name,
                user_id=user.id,
                contribution_id=contribution.id
            )
            return None
        return self.notify(template_name, user, contribution, options)

    def deliver_pending_refund_notices(self, now=None, interval_days=7):
        """Notifica os apoios com reembolso de boleto pendente sem conta bancária"""
        now = now or datetime.utcnow()
        contributions = Contribution.need_notify_about_pending_refund(now, interval_days)
        for contribution in contributions:
            self.notify(PENDING_REFUND_TEMPLATE, contribution.user, contribution)
        db.session.commit()

        logger.info("pending_refund_notices_delivered", quantidade=len(contributions))
        return [c.id for c in contributions]
