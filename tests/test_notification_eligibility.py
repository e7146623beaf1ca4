from datetime import datetime, timedelta

import pytest

from models import Contribution, ContributionNotification, Donation
from services.notification_eligibility import (
    PENDING_REFUND_TEMPLATE, ContributionDetail, SentNotification,
    need_notify_about_pending_refund
)
from services.notification_service import NotificationService

NOW = datetime(2024, 6, 10, 12, 0)


def stalled(contribution_id=1, **overrides):
    values = dict(
        contribution_id=contribution_id,
        project_state='failed',
        donation_id=None,
        state='paid',
        gateway='Pagarme',
        payment_method='BoletoBancario'
    )
    values.update(overrides)
    return ContributionDetail(**values)


def sent(days_ago, template=PENDING_REFUND_TEMPLATE):
    return SentNotification(template_name=template, created_at=NOW - timedelta(days=days_ago))


def test_stalled_slip_without_history_is_eligible():
    assert need_notify_about_pending_refund([(1, stalled(), [])], NOW) == [1]


@pytest.mark.parametrize('history,eligible', [
    ([sent(3)], False),
    ([sent(7)], False),
    ([sent(8)], True),
    ([sent(30), sent(2)], False),
    ([sent(30), sent(9)], True),
    ([sent(1, template='invalid_refund')], True),
])
def test_recent_notification_blocks_for_seven_days(history, eligible):
    result = need_notify_about_pending_refund([(1, stalled(), history)], NOW)
    assert result == ([1] if eligible else [])


@pytest.mark.parametrize('overrides', [
    {'project_state': 'online'},
    {'project_state': 'successful'},
    {'donation_id': 5},
    {'state': 'pending'},
    {'state': 'refunded'},
    {'gateway': 'MoIP'},
    {'payment_method': 'CartaoDeCredito'},
])
def test_non_matching_details_are_excluded(overrides):
    assert need_notify_about_pending_refund([(1, stalled(**overrides), [])], NOW) == []


def test_gateway_and_method_are_case_insensitive():
    detail = stalled(gateway='PAGARME', payment_method='boletobancario')
    assert need_notify_about_pending_refund([(1, detail, [])], NOW) == [1]


def test_ids_are_distinct_and_rerunnable():
    rows = [
        (2, stalled(2), []),
        (1, stalled(1, state='refused'), []),
        (1, stalled(1), []),
        (2, stalled(2), []),
        (3, stalled(3), [sent(1)]),
    ]
    first = need_notify_about_pending_refund(rows, NOW)

    assert first == [1, 2]
    assert need_notify_about_pending_refund(rows, NOW) == first


def make_stalled_contribution(factory, db, **payment_kwargs):
    project = factory.project(state='failed')
    contribution = factory.contribution(project=project)
    payment_kwargs.setdefault('state', 'paid')
    payment_kwargs.setdefault('gateway', 'Pagarme')
    payment_kwargs.setdefault('payment_method', 'BoletoBancario')
    factory.payment(contribution, **payment_kwargs)
    return contribution


def test_query_over_database(factory, db):
    eligible = make_stalled_contribution(factory, db)
    make_stalled_contribution(factory, db, payment_method='CartaoDeCredito')

    donated = make_stalled_contribution(factory, db)
    donation = Donation(user_id=donated.user_id, amount=donated.value)
    db.session.add(donation)
    db.session.flush()
    donated.donation_id = donation.id
    db.session.commit()

    result = Contribution.need_notify_about_pending_refund(datetime.utcnow())

    assert [c.id for c in result] == [eligible.id]


def test_delivering_notices_is_idempotent_within_interval(factory, db):
    contribution = make_stalled_contribution(factory, db)
    delivered = []
    service = NotificationService(dispatcher=lambda n, user, c: delivered.append((n.template_name, user.id, c.id)))

    assert service.deliver_pending_refund_notices() == [contribution.id]
    assert service.deliver_pending_refund_notices() == []
    assert delivered == [(PENDING_REFUND_TEMPLATE, contribution.user_id, contribution.id)]

    later = datetime.utcnow() + timedelta(days=8)
    assert service.deliver_pending_refund_notices(now=later) == [contribution.id]
    assert ContributionNotification.query.filter_by(
        contribution_id=contribution.id, template_name=PENDING_REFUND_TEMPLATE
    ).count() == 2


def test_cli_command_delivers_notices(app, factory, db):
    make_stalled_contribution(factory, db)

    result = app.test_cli_runner().invoke(args=['notify-pending-refunds'])

    assert result.exit_code == 0
    assert 'Notificações enviadas: 1' in result.output


def test_detail_rows_are_narrowed_in_sql(factory, db):
    eligible = make_stalled_contribution(factory, db, gateway='PAGARME')
    make_stalled_contribution(factory, db, state='refunded')
    make_stalled_contribution(factory, db, gateway='MoIP')
    online = factory.contribution(project=factory.project(state='online'))
    factory.payment(online, state='paid', gateway='Pagarme', payment_method='BoletoBancario')

    rows = list(Contribution.pending_refund_rows())

    assert [contribution_id for contribution_id, _, _ in rows] == [eligible.id]
