from database import db
from datetime import datetime

class Donation(db.Model):
    """Apoio convertido em doação (projeto não financiado, sem reembolso)"""
    __tablename__ = 'donations'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'))
    amount = db.Column(db.Numeric(10, 2))
    created_at = db.Column(db.DateTime, default=datetime.utcnow)


class Origin(db.Model):
    """Origem de tráfego que levou ao apoio"""
    __tablename__ = 'origins'

    id = db.Column(db.Integer, primary_key=True)
    domain = db.Column(db.String(200))
    referral = db.Column(db.String(200))
