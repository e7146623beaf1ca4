import json
from datetime import datetime, timedelta
from decimal import Decimal
from flask import current_app
from sqlalchemy import event, func, inspect
from database import db
from models.notification import ContributionNotification
from models.payment import Payment
from models.project import Project
from models.user import User
from services.billing_service import (
    BillingInfo, UserProfile, apply_billing_info, changed_fields, merge_into_user,
    snapshot_from_user
)
from services.notification_eligibility import (
    ContributionDetail, PENDING_REFUND_GATEWAY, PENDING_REFUND_PAYMENT_METHOD,
    PENDING_REFUND_TEMPLATE, SentNotification,
    need_notify_about_pending_refund
)
from security import logger

DOMESTIC_COUNTRY_NAME = 'Brasil'
PROTECTED_ATTRIBUTES = ('user_id', 'is_confirmed', 'was_confirmed')


class ProtectedAttributeError(Exception):
    pass


class Contribution(db.Model):
    __tablename__ = 'contributions'

    id = db.Column(db.Integer, primary_key=True)
    project_id = db.Column(db.Integer, db.ForeignKey('projects.id'), nullable=False)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False)
    reward_id = db.Column(db.Integer, db.ForeignKey('rewards.id'))
    shipping_fee_id = db.Column(db.Integer, db.ForeignKey('shipping_fees.id'))
    country_id = db.Column(db.Integer, db.ForeignKey('countries.id'))
    donation_id = db.Column(db.Integer, db.ForeignKey('donations.id'))
    origin_id = db.Column(db.Integer, db.ForeignKey('origins.id'))
    value = db.Column(db.Numeric(10, 2), nullable=False)
    anonymous = db.Column(db.Boolean, default=False, nullable=False)

    # Status mantidos fora deste modelo (processamento de pagamentos)
    is_confirmed = db.Column(db.Boolean, default=False, nullable=False)
    was_confirmed = db.Column(db.Boolean, default=False, nullable=False)

    # Snapshot dos dados de cobrança no momento do apoio
    address_street = db.Column(db.String(200))
    address_number = db.Column(db.String(20))
    address_complement = db.Column(db.String(100))
    address_neighbourhood = db.Column(db.String(100))
    address_zip_code = db.Column(db.String(20))
    address_city = db.Column(db.String(100))
    address_state = db.Column(db.String(50))
    address_phone_number = db.Column(db.String(30))
    payer_document = db.Column(db.String(20))
    payer_name = db.Column(db.String(100))
    payer_email = db.Column(db.String(100))

    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    project = db.relationship('Project', back_populates='contributions')
    user = db.relationship('User')
    reward = db.relationship('Reward')
    shipping_fee = db.relationship('ShippingFee')
    country = db.relationship('Country')
    donation = db.relationship('Donation')
    origin = db.relationship('Origin')
    payments = db.relationship('Payment', backref='contribution', lazy='dynamic',
                               order_by='Payment.id')
    notifications = db.relationship('ContributionNotification', backref='contribution',
                                    lazy='dynamic')

    # --- Consultas nomeadas ---

    @classmethod
    def not_anonymous(cls):
        return cls.query.filter(cls.anonymous.is_(False))

    @classmethod
    def confirmed_last_day(cls, now=None):
        now = now or datetime.utcnow()
        paid_recently = db.session.query(Payment.id).filter(
            Payment.contribution_id == cls.id,
            Payment.state == 'paid',
            Payment.paid_at > now - timedelta(days=1)
        ).exists()
        return cls.query.filter(paid_recently)

    @classmethod
    def was_confirmed_scope(cls):
        return cls.query.filter(cls.was_confirmed.is_(True))

    @classmethod
    def available_to_display(cls):
        displayable = db.session.query(Payment.id).filter(
            Payment.contribution_id == cls.id,
            Payment.state.notin_(('deleted', 'refused'))
        ).exists()
        return cls.query.filter(displayable)

    @classmethod
    def ordered(cls, query=None):
        query = query if query is not None else cls.query
        return query.order_by(cls.id.desc())

    @classmethod
    def pending_refund_rows(cls):
        """Monta a visão de detalhes (um registro por pagamento) com o histórico de notificações"""
        # só boletos pagos de projetos que falharam chegam ao predicado
        details = db.session.query(
            cls.id, Project.state, cls.donation_id,
            Payment.state, Payment.gateway, Payment.payment_method
        ).join(Payment, Payment.contribution_id == cls.id).join(
            Project, Project.id == cls.project_id
        ).filter(
            Project.state == 'failed',
            cls.donation_id.is_(None),
            Payment.state == 'paid',
            func.lower(Payment.gateway) == PENDING_REFUND_GATEWAY,
            func.lower(Payment.payment_method) == PENDING_REFUND_PAYMENT_METHOD
        ).all()

        history = {}
        sent = db.session.query(
            ContributionNotification.contribution_id,
            ContributionNotification.template_name,
            ContributionNotification.created_at
        ).filter(ContributionNotification.template_name == PENDING_REFUND_TEMPLATE)
        for contribution_id, template_name, created_at in sent:
            history.setdefault(contribution_id, []).append(
                SentNotification(template_name=template_name, created_at=created_at)
            )

        for contribution_id, project_state, donation_id, state, gateway, method in details:
            detail = ContributionDetail(
                contribution_id=contribution_id,
                project_state=project_state,
                donation_id=donation_id,
                state=state,
                gateway=gateway,
                payment_method=method
            )
            yield contribution_id, detail, history.get(contribution_id, [])

    @classmethod
    def need_notify_about_pending_refund(cls, now=None, interval_days=7):
        """Apoios que precisam ser avisados sobre reembolso pendente sem conta bancária"""
        ids = need_notify_about_pending_refund(cls.pending_refund_rows(), now, interval_days)
        if not ids:
            return []
        return cls.query.filter(cls.id.in_(ids)).order_by(cls.id).all()

    # --- Estado derivado ---

    def international(self):
        country_name = self.country.name if self.country else None
        return country_name != DOMESTIC_COUNTRY_NAME

    def confirmed(self):
        if not getattr(self, '_confirmed', None):
            self._confirmed = db.session.query(Contribution.is_confirmed).filter(
                Contribution.id == self.id
            ).scalar()
        return bool(self._confirmed)

    def was_confirmed_status(self):
        if not getattr(self, '_was_confirmed', None):
            self._was_confirmed = db.session.query(Contribution.was_confirmed).filter(
                Contribution.id == self.id
            ).scalar()
        return bool(self._was_confirmed)

    def over_refund_limit(self):
        limit = current_app.config['REFUND_NOTIFICATION_LIMIT']
        return self.notifications.filter_by(template_name='invalid_refund').count() > limit

    def last_payment(self):
        return self.payments.order_by(None).order_by(Payment.id.desc()).first()

    def slip_payment(self):
        payment = self.last_payment()
        return bool(payment and payment.slip_payment())

    def is_donation(self):
        return self.donation_id is not None

    def pending(self):
        return self.payments.filter_by(state='pending').first() is not None

    def price_in_cents(self):
        """Usado pelos meios de pagamento"""
        return int((Decimal(self.value) * 100).to_integral_value())

    # --- Alterações ---

    def change_reward(self, reward_id):
        from services.validation_service import ValidationService
        self.reward_id = reward_id
        errors = ValidationService.validar_contribuicao(self)
        self.errors = errors
        if errors:
            db.session.rollback()
            logger.warning("reward_change_failed", contribution_id=self.id, errors=errors)
            return False
        db.session.commit()
        logger.info("reward_changed", contribution_id=self.id, reward_id=reward_id)
        return True

    def update_current_billing_info(self):
        """Copia os dados de cobrança do perfil do usuário para o apoio"""
        return snapshot_from_user(self, self.user)

    def update_billing_info(self, info: BillingInfo):
        return apply_billing_info(self, info)

    def update_user_billing_info(self):
        """Atualiza o perfil do usuário com o snapshot; o commit fica com quem chama"""
        before = UserProfile.model_validate(self.user)
        after = merge_into_user(BillingInfo.model_validate(self), before)
        changes = changed_fields(before, after)
        for field, value in changes.items():
            setattr(self.user, field, value)

        logger.info("billing_info_merged", contribution_id=self.id,
                    user_id=self.user_id, fields=sorted(changes))
        return changes

    # --- Notificações ---

    def invalid_refund(self, service=None):
        from services.notification_service import NotificationService
        service = service or NotificationService()
        service.notify('invalid_refund', self.user, self)
        if self.over_refund_limit():
            backoffice_user = User.query.filter_by(email=current_app.config['EMAIL_CONTACT']).first()
            self.notify_to_backoffice('over_refund_limit', {'from_email': self.user.email},
                                      backoffice_user, service=service)

    def notify_to_contributor(self, template_name, options=None, service=None):
        from services.notification_service import NotificationService
        service = service or NotificationService()
        return service.notify_once(template_name, self.user, self, options)

    def notify_to_backoffice(self, template_name, options=None, backoffice_user=None, service=None):
        from services.notification_service import NotificationService
        if backoffice_user is None:
            backoffice_user = User.query.filter_by(email=current_app.config['EMAIL_PAYMENTS']).first()
        if backoffice_user is None:
            return None
        service = service or NotificationService()
        return service.notify_once(template_name, backoffice_user, self, options)

    # --- Serialização ---

    def to_js(self):
        return {
            'id': self.id,
            'value': float(self.value),
            'reward': {
                'id': self.reward.id if self.reward else None,
                'description': self.reward.description if self.reward else None,
                'shipping_options': self.reward.shipping_options if self.reward else None
            },
            'shipping_fee_id': self.shipping_fee_id
        }

    def to_json(self):
        return json.dumps(self.to_js())

    def contribution_attributes(self):
        payment = self.last_payment()
        return {
            'contribution_id': self.id,
            'value': float(self.value),
            'project': {
                'category': self.project.category,
                'user_thumb': self.project.user.display_image,
                'permalink': self.project.permalink,
                'total_contributions': self.project.total_contributions,
                'service_fee': float(self.project.service_fee or 0),
                'name': self.project.name
            },
            'reward': {
                'reward_id': self.reward.id,
                'minimum_value': float(self.reward.minimum_value)
            } if self.reward else None,
            'contribution_email': self.user.email,
            'slip_url': payment.slip_url if payment and payment.slip_payment() else None
        }

    def contribution_json(self):
        return json.dumps(self.contribution_attributes())


_protected_configured = False


def _protect(attribute_name):
    def guard(target, value, oldvalue, initiator):
        if inspect(target).persistent and value != oldvalue:
            raise ProtectedAttributeError(
                f'{attribute_name} não pode ser alterado em um apoio já salvo'
            )
        return value
    event.listen(getattr(Contribution, attribute_name), 'set', guard,
                 retval=True, active_history=True)


def configure_protected_attributes(names=PROTECTED_ATTRIBUTES):
    """Impede atribuição direta de campos sensíveis; falhas não interrompem a aplicação"""
    global _protected_configured
    if _protected_configured:
        return True
    try:
        for name in names:
            _protect(name)
        _protected_configured = True
    except Exception as e:
        logger.error("protected_attributes_failed", error=str(e))
        return False
    return True
