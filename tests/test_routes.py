from decimal import Decimal

import pytest

from config import TestConfig
from app import create_app
from database import db as _db
from models import Contribution, ContributionNotification
from production import init_production, sanitize_input
from services.analytics import LoggingAnalyticsSink


@pytest.fixture
def tracked(monkeypatch):
    events = []
    monkeypatch.setattr(LoggingAnalyticsSink, 'emit',
                        lambda self, category, action, label=None, value=None:
                        events.append(action))
    return events


@pytest.fixture
def checkout(factory):
    project = factory.project()
    reward = factory.reward(project, minimum_value='100.00', description='Disco')
    user = factory.user(name='Rita', cpf='123.456.789-09', address_city='Salvador')
    return project, reward, user


def test_health(client):
    response = client.get('/health')
    assert response.status_code == 200
    assert response.get_json()['status'] == 'healthy'


def test_status(client):
    assert client.get('/api/status').get_json()['minimum_value'] == 10.0


def test_list_rewards(client, checkout):
    project, reward, _ = checkout

    data = client.get(f'/api/projects/{project.id}/rewards').get_json()

    assert data['success'] is True
    assert [r['id'] for r in data['rewards']] == [reward.id]
    assert data['rewards'][0]['minimum_value'] == 100.0


def test_unknown_project_is_404(client):
    assert client.get('/api/projects/999/rewards').status_code == 404


def test_new_contribution_payload(client, factory):
    project = factory.project()

    data = client.get(f'/api/projects/{project.id}/contributions/new').get_json()

    assert data['free_pledge'] is True
    assert data['minimum_value'] == 10.0
    assert data['chat_widget'] is False


def test_empty_value_pledges_reward_minimum(client, checkout, tracked):
    project, reward, user = checkout

    response = client.post(f'/api/projects/{project.id}/contributions',
                           json={'user_id': user.id, 'reward_id': reward.id, 'value': ''})

    assert response.status_code == 201
    body = response.get_json()['contribution']
    assert body['value'] == 100.0
    assert body['reward'] == {'reward_id': reward.id, 'minimum_value': 100.0}
    assert body['contribution_email'] == user.email
    assert tracked == ['contribution_reward_change', 'contribution_continue_click']

    contribution = Contribution.query.one()
    assert contribution.payer_document == '123.456.789-09'
    assert contribution.address_city == 'Salvador'
    assert contribution.payer_email == user.email


def test_value_below_reward_minimum_is_rejected(client, checkout, tracked):
    project, reward, user = checkout

    response = client.post(f'/api/projects/{project.id}/contributions',
                           json={'user_id': user.id, 'reward_id': reward.id, 'value': '50'})

    assert response.status_code == 422
    assert 'value' in response.get_json()['errors']
    assert Contribution.query.count() == 0
    assert 'contribution_continue_click' not in tracked


def test_grouping_separators_are_stripped(client, checkout):
    project, reward, user = checkout

    response = client.post(f'/api/projects/{project.id}/contributions',
                           json={'user_id': user.id, 'reward_id': reward.id, 'value': 'R$ 1.500'})

    assert response.status_code == 201
    assert response.get_json()['contribution']['value'] == 1500.0


def test_free_pledge_uses_global_minimum(client, checkout):
    project, _, user = checkout
    url = f'/api/projects/{project.id}/contributions'

    assert client.post(url, json={'user_id': user.id, 'value': '5'}).status_code == 422

    response = client.post(url, json={'user_id': user.id, 'value': ''})
    assert response.status_code == 201
    assert response.get_json()['contribution']['value'] == 10.0
    assert response.get_json()['contribution']['reward'] is None


def test_reward_from_another_project_is_rejected(client, checkout, factory):
    project, _, user = checkout
    foreign = factory.reward(factory.project(), minimum_value='20.00')

    response = client.post(f'/api/projects/{project.id}/contributions',
                           json={'user_id': user.id, 'reward_id': foreign.id, 'value': '100'})

    assert response.status_code == 422
    assert 'reward' in response.get_json()['errors']


def test_missing_user_is_rejected(client, checkout):
    project, reward, _ = checkout
    response = client.post(f'/api/projects/{project.id}/contributions',
                           json={'reward_id': reward.id, 'value': '100'})

    assert response.status_code == 422
    assert response.get_json()['errors'] == {'user': ['não pode ficar em branco']}


def test_non_json_body_is_rejected(client, checkout):
    project, _, _ = checkout
    response = client.post(f'/api/projects/{project.id}/contributions', data='value=10')
    assert response.status_code == 400


def test_get_contribution(client, factory):
    brasil = factory.country('Brasil')
    contribution = factory.contribution(country_id=brasil.id)

    data = client.get(f'/api/contributions/{contribution.id}').get_json()

    assert data['contribution']['contribution_id'] == contribution.id
    assert data['international'] is False
    assert data['confirmed'] is False


def test_change_reward_route(client, factory):
    project = factory.project()
    reward = factory.reward(project, minimum_value='30.00', description='Pôster')
    contribution = factory.contribution(project=project)

    ok = client.patch(f'/api/contributions/{contribution.id}/reward', json={'reward_id': reward.id})
    bad = client.patch(f'/api/contributions/{contribution.id}/reward', json={'reward_id': 4242})

    assert ok.status_code == 200
    assert ok.get_json()['contribution']['reward']['description'] == 'Pôster'
    assert bad.status_code == 422
    assert bad.get_json()['errors'] == {'reward': ['não encontrada']}


def test_billing_update_merges_into_user(client, factory):
    user = factory.user(name='Léo', address_street='Rua A', cpf=None)
    contribution = factory.contribution(user=user)

    response = client.put(f'/api/contributions/{contribution.id}/billing', json={
        'address_street': '',
        'address_city': 'Recife',
        'payer_document': '123456789012345',
        'payer_name': '<b>Léo</b> Ltda'
    })

    assert response.status_code == 200
    body = response.get_json()
    assert body['user']['account_type'] == 'pj'
    assert body['user']['address_city'] == 'Recife'
    assert 'address_street' not in body['updated_fields']
    assert user.address_street == 'Rua A'
    assert user.cpf == '123456789012345'
    assert contribution.payer_name == 'Léo Ltda'


def test_billing_update_rejects_bad_types(client, factory):
    contribution = factory.contribution()

    response = client.put(f'/api/contributions/{contribution.id}/billing',
                          json={'country_id': 'brasil'})

    assert response.status_code == 422
    assert 'country_id' in response.get_json()['errors']


def test_invalid_refund_route(client, app, factory):
    factory.user(email=app.config['EMAIL_CONTACT'])
    contribution = factory.contribution()
    url = f'/api/contributions/{contribution.id}/invalid_refund'

    results = [client.post(url).get_json()['over_refund_limit'] for _ in range(3)]

    assert results == [False, False, True]
    assert ContributionNotification.query.filter_by(template_name='over_refund_limit').count() == 1


def test_project_transfer(client, factory):
    project = factory.project()
    assert client.get(f'/api/projects/{project.id}/transfer').status_code == 404

    factory.transfer(project, amount='1500.00')
    data = client.get(f'/api/projects/{project.id}/transfer').get_json()

    assert data['transfer']['amount'] == 1500.0
    assert project.transfer.project_id == project.id


def test_sanitize_input_strips_markup():
    assert sanitize_input({'a': ['<script>x</script>ok', 1]}) == {'a': ['xok', 1]}
    assert sanitize_input({'nome': '<b>Léo</b> <a href="x">Ltda</a>'}) == {'nome': 'Léo Ltda'}


def test_production_healthcheck():
    app = create_app(TestConfig)
    init_production(app)
    with app.app_context():
        response = app.test_client().get('/healthz')
        assert response.status_code == 200
        checks = response.get_json()['checks']
        assert checks['database']['status'] == 'ok'
        assert checks['memory']['status'] == 'ok'
        assert response.headers['Strict-Transport-Security'].startswith('max-age')
        _db.session.remove()
        _db.drop_all()


def test_seed_command_is_repeatable(app):
    from models import Project, Reward
    runner = app.test_cli_runner()

    assert runner.invoke(args=['seed']).exit_code == 0
    assert runner.invoke(args=['seed']).exit_code == 0

    project = Project.query.filter_by(permalink='projeto-exemplo').one()
    assert [float(r.minimum_value) for r in project.rewards] == [25.0, 100.0, 500.0]
    assert Reward.query.count() == 3


def test_comma_decimal_value_is_stored_as_cents(client, checkout):
    project, _, user = checkout

    response = client.post(f'/api/projects/{project.id}/contributions',
                           json={'user_id': user.id, 'value': '10,50'})

    assert response.status_code == 201
    assert response.get_json()['contribution']['value'] == 10.5
    assert Contribution.query.one().value == Decimal('10.50')


def test_malformed_decimal_value_is_rejected(client, checkout):
    project, _, user = checkout

    response = client.post(f'/api/projects/{project.id}/contributions',
                           json={'user_id': user.id, 'value': '10,505'})

    assert response.status_code == 422
    assert Contribution.query.count() == 0


@pytest.mark.parametrize('value,expected', [('', 25.5), ('25,50', 25.5), ('30,25', 30.25)])
def test_fractional_reward_minimum(client, factory, value, expected):
    project = factory.project()
    reward = factory.reward(project, minimum_value='25.50', description='Adesivo')
    user = factory.user()

    response = client.post(f'/api/projects/{project.id}/contributions',
                           json={'user_id': user.id, 'reward_id': reward.id, 'value': value})

    assert response.status_code == 201
    assert response.get_json()['contribution']['value'] == expected


def test_below_fractional_minimum_reports_minimum(client, factory):
    project = factory.project()
    reward = factory.reward(project, minimum_value='25.50')
    user = factory.user()

    response = client.post(f'/api/projects/{project.id}/contributions',
                           json={'user_id': user.id, 'reward_id': reward.id, 'value': '25'})

    assert response.status_code == 422
    assert response.get_json()['errors'] == {
        'value': ['o valor mínimo para esta recompensa é 25,50']
    }


class RateLimitedConfig(TestConfig):
    RATELIMIT_ENABLED = True


def test_rate_limit_responds_with_json():
    app = create_app(RateLimitedConfig)
    with app.app_context():
        client = app.test_client()
        url = '/api/projects/1/contributions'
        statuses = [client.post(url, json={}).status_code for _ in range(11)]
        response = client.post(url, json={})

        assert statuses[:10] == [404] * 10
        assert response.status_code == 429
        assert response.get_json()['success'] is False
        _db.session.remove()
        _db.drop_all()
