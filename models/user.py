from database import db
from datetime import datetime

DEFAULT_THUMBNAIL = '/assets/user.png'

class User(db.Model):
    __tablename__ = 'users'

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(100), nullable=False, unique=True)
    name = db.Column(db.String(100))
    public_name = db.Column(db.String(100))
    cpf = db.Column(db.String(20))
    account_type = db.Column(db.String(2), default='pf')
    country_id = db.Column(db.Integer, db.ForeignKey('countries.id'))
    address_street = db.Column(db.String(200))
    address_number = db.Column(db.String(20))
    address_complement = db.Column(db.String(100))
    address_neighbourhood = db.Column(db.String(100))
    address_zip_code = db.Column(db.String(20))
    address_city = db.Column(db.String(100))
    address_state = db.Column(db.String(50))
    phone_number = db.Column(db.String(30))
    profile_image_url = db.Column(db.String(300))
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    country = db.relationship('Country')

    @property
    def display_image(self):
        return self.profile_image_url or DEFAULT_THUMBNAIL

    @property
    def display_name(self):
        return self.public_name or self.name or self.email

    def to_dict(self):
        return {
            'id': self.id,
            'email': self.email,
            'name': self.name,
            'public_name': self.public_name,
            'account_type': self.account_type,
            'country_id': self.country_id,
            'address_city': self.address_city,
            'address_state': self.address_state
        }
