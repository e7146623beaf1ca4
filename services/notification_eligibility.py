"""
Apoios com reembolso de boleto parado por falta de conta bancária.

O predicado trabalha sobre uma visão de leitura desnormalizada (um
``ContributionDetail`` por pagamento) mais o histórico de notificações,
independente do banco de dados. ``Contribution.need_notify_about_pending_refund``
monta essa visão a partir das tabelas e delega para cá.
"""
from datetime import datetime, timedelta
from typing import Iterable, List, Optional, Sequence, Tuple

from pydantic import BaseModel, ConfigDict

PENDING_REFUND_TEMPLATE = 'contribution_project_unsuccessful_slip_no_account'
PENDING_REFUND_GATEWAY = 'pagarme'
PENDING_REFUND_PAYMENT_METHOD = 'boletobancario'
DEFAULT_INTERVAL_DAYS = 7


class ContributionDetail(BaseModel):
    """Linha da visão de detalhes: um pagamento de um apoio"""
    model_config = ConfigDict(frozen=True)

    contribution_id: int
    project_state: Optional[str] = None
    donation_id: Optional[int] = None
    state: Optional[str] = None
    gateway: Optional[str] = None
    payment_method: Optional[str] = None


class SentNotification(BaseModel):
    model_config = ConfigDict(frozen=True)

    template_name: str
    created_at: datetime


EligibilityRow = Tuple[int, ContributionDetail, Sequence[SentNotification]]


def is_stalled_slip_refund(detail: ContributionDetail) -> bool:
    return (
        detail.project_state == 'failed'
        and detail.donation_id is None
        and detail.state == 'paid'
        and (detail.gateway or '').lower() == PENDING_REFUND_GATEWAY
        and (detail.payment_method or '').lower() == PENDING_REFUND_PAYMENT_METHOD
    )


def notification_is_due(history: Iterable[SentNotification], now: datetime,
                        interval_days: int = DEFAULT_INTERVAL_DAYS) -> bool:
    sent = [n.created_at for n in history if n.template_name == PENDING_REFUND_TEMPLATE]
    if not sent:
        return True
    return now - max(sent) > timedelta(days=interval_days)


def need_notify_about_pending_refund(rows: Iterable[EligibilityRow], now: Optional[datetime] = None,
                                     interval_days: int = DEFAULT_INTERVAL_DAYS) -> List[int]:
    """Retorna os ids (distintos, ordenados) dos apoios que devem ser notificados"""
    now = now or datetime.utcnow()
    eligible = set()
    for contribution_id, detail, history in rows:
        if contribution_id in eligible:
            continue
        if is_stalled_slip_refund(detail) and notification_is_due(history, now, interval_days):
            eligible.add(contribution_id)
    return sorted(eligible)
