"""
Utilitários e configurações específicas para ambiente de produção.
Inclui compressão, healthchecks e sanitização de entrada.
"""
from flask import request, current_app
from flask_compress import Compress
from sqlalchemy import text
from werkzeug.middleware.proxy_fix import ProxyFix
import functools
import bleach
import time
from security import logger

# Configuração de compressão
compress = Compress()

def init_production(app):
    """Inicializa configurações de produção"""
    # Suporte a proxy (HTTPS atrás do balanceador)
    app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1)

    # Ativa compressão gzip
    compress.init_app(app)

    @app.after_request
    def add_strict_transport_security(response):
        response.headers['Strict-Transport-Security'] = 'max-age=31536000; includeSubDomains'
        return response

    @app.route('/healthz')
    def healthcheck():
        checks = {
            'database': check_database(),
            'memory': check_memory(),
            'uptime': get_uptime()
        }

        status = 200 if all(v['status'] == 'ok' for v in checks.values()) else 503
        return {'status': 'healthy' if status == 200 else 'unhealthy', 'checks': checks}, status

def sanitize_input(data):
    """Sanitiza input do usuário para prevenir XSS"""
    if isinstance(data, str):
        return bleach.clean(data, tags=set(), strip=True)
    elif isinstance(data, dict):
        return {k: sanitize_input(v) for k, v in data.items()}
    elif isinstance(data, list):
        return [sanitize_input(i) for i in data]
    return data

def validate_request_json():
    """Decorator para validar e sanitizar JSON requests"""
    def decorator(f):
        @functools.wraps(f)
        def wrapper(*args, **kwargs):
            if not request.is_json:
                return {'success': False, 'error': 'Content-Type must be application/json'}, 400

            data = request.get_json(silent=True)
            if not isinstance(data, dict):
                logger.warning("invalid_json", path=request.path)
                return {'success': False, 'error': 'Invalid JSON format'}, 400

            sanitized = sanitize_input(data)
            request._cached_json = (sanitized, sanitized)  # request.get_json() passa a devolver a versão sanitizada
            return f(*args, **kwargs)
        return wrapper
    return decorator

def check_database():
    """Verifica conexão com banco de dados"""
    from database import db
    try:
        inicio = time.time()
        db.session.execute(text('SELECT 1'))
        return {'status': 'ok', 'latency_ms': round((time.time() - inicio) * 1000, 2)}
    except Exception as e:
        logger.error("database_check_failed", error=str(e))
        return {'status': 'error', 'error': str(e)}

def check_memory():
    """Verifica uso de memória"""
    import psutil
    try:
        process = psutil.Process()
        memory_info = process.memory_info()
        return {
            'status': 'ok',
            'rss_mb': memory_info.rss / 1024 / 1024,
            'vms_mb': memory_info.vms / 1024 / 1024
        }
    except Exception as e:
        logger.error("memory_check_failed", error=str(e))
        return {'status': 'error', 'error': str(e)}

def get_uptime():
    """Retorna uptime da aplicação"""
    try:
        uptime = time.time() - current_app.start_time
        return {
            'status': 'ok',
            'uptime_seconds': int(uptime)
        }
    except Exception as e:
        logger.error("uptime_check_failed", error=str(e))
        return {'status': 'error', 'error': str(e)}
