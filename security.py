"""
Configurações de segurança centralizadas para a aplicação.
Inclui CORS, Rate Limiting, Cache e logging de requisições.
"""
from flask import jsonify, request
from flask_cors import CORS
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from flask_caching import Cache
import structlog
import logging.config
from config import Config

# Configuração de Logging
logging.config.dictConfig(Config.LOGGING_CONFIG)
logger = structlog.get_logger()

# Cache
cache = Cache()

# Rate Limiter
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[Config.RATE_LIMIT_APP],
    storage_uri="memory://"  # Usando memória local ao invés de Redis
)

def init_security(app):
    """Inicializa todas as configurações de segurança"""
    # CORS
    CORS(app, origins=app.config['CORS_ORIGINS'])

    # Cache
    cache.init_app(app, config={
        'CACHE_TYPE': app.config['CACHE_TYPE'],
        'CACHE_DEFAULT_TIMEOUT': app.config['CACHE_DEFAULT_TIMEOUT']
    })

    # Rate Limiter
    limiter.init_app(app)

    # Headers de Segurança
    @app.after_request
    def add_security_headers(response):
        response.headers['X-Content-Type-Options'] = 'nosniff'
        response.headers['X-Frame-Options'] = 'DENY'
        response.headers['X-XSS-Protection'] = '1; mode=block'
        return response

    # Limite estourado responde no mesmo formato das rotas
    @app.errorhandler(429)
    def rate_limit_exceeded(e):
        logger.warning("rate_limit_exceeded", path=request.path, limit=str(e.description))
        return jsonify({
            'success': False,
            'error': 'Muitas requisições. Tente novamente em instantes.'
        }), 429

    # Log de requisições em produção
    if app.config.get('PRODUCTION'):
        @app.before_request
        def log_request_info():
            logger.info(
                "request_started",
                path=request.path,
                method=request.method,
                remote_addr=request.remote_addr
            )

        @app.after_request
        def log_response_info(response):
            logger.info(
                "request_finished",
                path=request.path,
                method=request.method,
                status=response.status_code
            )
            return response

    logger.info("security_initialized",
                cors_origins=app.config['CORS_ORIGINS'],
                cache_type=app.config['CACHE_TYPE'],
                rate_limit=app.config['RATE_LIMIT_APP'])

    return app
