from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()

def init_db(app):
    """Inicializa o SQLAlchemy e cria as tabelas que ainda não existem"""
    db.init_app(app)

    # Importa os modelos para registrá-los no metadata antes do create_all
    import models  # noqa: F401

    with app.app_context():
        db.create_all()
        models.contribution.configure_protected_attributes()
