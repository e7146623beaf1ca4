from database import db
from datetime import datetime

SLIP_PAYMENT_METHOD = 'boletobancario'

class Payment(db.Model):
    __tablename__ = 'payments'

    id = db.Column(db.Integer, primary_key=True)
    contribution_id = db.Column(db.Integer, db.ForeignKey('contributions.id'), nullable=False)
    # pending, paid, refused, refunded, deleted, ...
    state = db.Column(db.String(20), nullable=False, default='pending')
    gateway = db.Column(db.String(50), default='Pagarme')
    payment_method = db.Column(db.String(50), default='CartaoDeCredito')
    gateway_data = db.Column(db.JSON, default=dict)
    paid_at = db.Column(db.DateTime)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def slip_payment(self):
        return (self.payment_method or '').lower() == SLIP_PAYMENT_METHOD

    @property
    def slip_url(self):
        return (self.gateway_data or {}).get('boleto_url')
