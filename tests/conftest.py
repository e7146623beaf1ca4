"""Fixtures do pytest: app com SQLite em memória e fábricas de registros."""
from datetime import datetime
from decimal import Decimal

import pytest

from app import create_app
from config import TestConfig
from database import db as _db
from models import (
    Contribution, Country, Payment, Project, ProjectTransfer, Reward, User
)


@pytest.fixture
def app():
    app = create_app(TestConfig)
    with app.app_context():
        yield app
        _db.session.remove()
        _db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def db(app):
    return _db


class Factory:
    def __init__(self, db):
        self.db = db
        self._seq = 0

    def _next(self):
        self._seq += 1
        return self._seq

    def country(self, name='Brasil'):
        country = Country.query.filter_by(name=name).first()
        if country is None:
            country = Country(name=name)
            self.db.session.add(country)
            self.db.session.commit()
        return country

    def user(self, **kwargs):
        n = self._next()
        kwargs.setdefault('email', f'apoiador{n}@example.com')
        kwargs.setdefault('name', f'Apoiador {n}')
        user = User(**kwargs)
        self.db.session.add(user)
        self.db.session.commit()
        return user

    def project(self, **kwargs):
        n = self._next()
        if 'user' not in kwargs:
            kwargs['user'] = self.user()
        kwargs.setdefault('name', f'Projeto {n}')
        kwargs.setdefault('permalink', f'projeto-{n}')
        kwargs.setdefault('category', 'Música')
        project = Project(**kwargs)
        self.db.session.add(project)
        self.db.session.commit()
        return project

    def reward(self, project, minimum_value='100.00', **kwargs):
        kwargs.setdefault('description', 'Recompensa')
        reward = Reward(project=project, minimum_value=Decimal(minimum_value), **kwargs)
        self.db.session.add(reward)
        self.db.session.commit()
        return reward

    def contribution(self, project=None, user=None, value='50.00', **kwargs):
        project = project or self.project()
        user = user or self.user()
        contribution = Contribution(project=project, project_id=project.id, user=user,
                                    user_id=user.id, value=Decimal(value), **kwargs)
        self.db.session.add(contribution)
        self.db.session.commit()
        return contribution

    def payment(self, contribution, **kwargs):
        payment = Payment(contribution_id=contribution.id, **kwargs)
        self.db.session.add(payment)
        self.db.session.commit()
        return payment

    def transfer(self, project, amount='1500.00'):
        transfer = ProjectTransfer(project_id=project.id, amount=Decimal(amount),
                                   created_at=datetime(2024, 5, 2, 12, 0))
        self.db.session.add(transfer)
        self.db.session.commit()
        return transfer


@pytest.fixture
def factory(db):
    return Factory(db)


class FakeAnalytics:
    def __init__(self):
        self.events = []

    def emit(self, category, action, label=None, value=None):
        self.events.append((category, action, label, value))

    def actions(self):
        return [e[1] for e in self.events]


@pytest.fixture
def analytics():
    return FakeAnalytics()
