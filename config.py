import os
from decimal import Decimal
from dotenv import load_dotenv

load_dotenv()

class Config:
    # Ambiente
    PRODUCTION = os.getenv("FLASK_ENV") == "production" or os.getenv("PRODUCTION") == "1"
    TESTING = False

    # Segurança
    SECRET_KEY = os.environ.get('SECRET_KEY', 'chave-secreta-padrao-mudar-em-producao')
    if PRODUCTION and SECRET_KEY == 'chave-secreta-padrao-mudar-em-producao':
        raise ValueError("⚠️ SECRET_KEY padrão detectada em produção!")

    # CORS e Rate Limiting
    CORS_ORIGINS = os.environ.get('CORS_ORIGINS', '*').split(',')
    RATE_LIMIT_APP = os.environ.get('RATE_LIMIT_APP', '100/hour')  # Limite global
    RATE_LIMIT_CONTRIBUTION = os.environ.get('RATE_LIMIT_CONTRIBUTION', '10/minute')  # Limite de apoios
    RATELIMIT_ENABLED = True

    # Cache
    CACHE_TYPE = 'SimpleCache'  # Cache simples em memória
    CACHE_DEFAULT_TIMEOUT = 300  # 5 minutos

    # URL do site
    SITE_URL = os.environ.get('SITE_URL', 'http://localhost:5000')

    # Database
    if PRODUCTION:
        SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL")
        if not SQLALCHEMY_DATABASE_URI:
            raise ValueError("⚠️ DATABASE_URL não configurado em produção!")
    else:
        # Em desenvolvimento, usa SQLite local
        SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL", "sqlite:///catarse_checkout.db")

    SQLALCHEMY_TRACK_MODIFICATIONS = False

    if PRODUCTION:
        SQLALCHEMY_ENGINE_OPTIONS = {
            'pool_size': 1,
            'max_overflow': 2,
            'pool_timeout': 30,
            'pool_recycle': 1800,
            'pool_pre_ping': True,
            'connect_args': {
                'sslmode': 'require',
                'options': '-c timezone=UTC'
            }
        }
    else:
        SQLALCHEMY_ENGINE_OPTIONS = {
            'pool_pre_ping': True
        }

    # Regras de apoio
    MINIMUM_CONTRIBUTION_VALUE = Decimal(os.environ.get('MINIMUM_CONTRIBUTION_VALUE', '10.00'))
    REFUND_NOTIFICATION_LIMIT = int(os.environ.get('REFUND_NOTIFICATION_LIMIT', '2'))
    PENDING_REFUND_NOTIFY_INTERVAL_DAYS = int(os.environ.get('PENDING_REFUND_NOTIFY_INTERVAL_DAYS', '7'))

    # Contatos do backoffice
    EMAIL_CONTACT = os.environ.get('EMAIL_CONTACT', 'contato@catarse.me')
    EMAIL_PAYMENTS = os.environ.get('EMAIL_PAYMENTS', 'financeiro@catarse.me')

    # Widget de chat (apenas para alguns projetos)
    CHAT_WIDGET_PROJECT_IDS = [
        int(p) for p in os.environ.get(
            'CHAT_WIDGET_PROJECT_IDS',
            '41679,40191,40271,38768,42815,43002,42129,41867,39655,29706'
        ).split(',') if p.strip()
    ]
    CHAT_WIDGET_POLL_ATTEMPTS = int(os.environ.get('CHAT_WIDGET_POLL_ATTEMPTS', '20'))
    CHAT_WIDGET_POLL_INTERVAL = float(os.environ.get('CHAT_WIDGET_POLL_INTERVAL', '0.5'))

    # Logging
    LOGGING_CONFIG = {
        'version': 1,
        'disable_existing_loggers': False,
        'formatters': {
            'default': {
                'format': '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
            },
            'json': {
                '()': 'pythonjsonlogger.json.JsonFormatter',
                'format': '%(asctime)s %(name)s %(levelname)s %(message)s'
            }
        },
        'handlers': {
            'console': {
                'class': 'logging.StreamHandler',
                'formatter': 'default' if not PRODUCTION else 'json',
                'stream': 'ext://sys.stdout',
                'level': 'INFO'
            },
            'file': {
                'class': 'logging.handlers.RotatingFileHandler',
                'filename': 'app.log',
                'maxBytes': 1024 * 1024,  # 1 MB
                'backupCount': 3,
                'formatter': 'json',
                'level': 'INFO',
                'delay': True
            }
        },
        'root': {
            'level': 'INFO',
            'handlers': ['console', 'file'] if PRODUCTION else ['console']
        }
    }


class TestConfig(Config):
    """Configuração usada pela suíte de testes"""
    TESTING = True
    PRODUCTION = False
    SECRET_KEY = 'chave-de-teste'
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_ENGINE_OPTIONS = {}
    RATELIMIT_ENABLED = False
    CACHE_TYPE = 'NullCache'
    CHAT_WIDGET_POLL_INTERVAL = 0
