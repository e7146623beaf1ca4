"""
Configuração do Gunicorn para produção
"""
import multiprocessing
import os

# Configurações do servidor
bind = f"0.0.0.0:{os.getenv('PORT', '8000')}"
wsgi_app = 'app:app'
workers = int(os.getenv('WEB_CONCURRENCY', multiprocessing.cpu_count() * 2 + 1))
threads = 2
worker_class = 'gthread'
timeout = 60
keepalive = 5
max_requests = 1000
max_requests_jitter = 50

# Logs
accesslog = '-'
errorlog = '-'
loglevel = 'info'

def post_fork(server, worker):
    """Inicializa o Sentry em cada worker, se configurado"""
    server.log.info("Worker %s iniciado", worker.pid)

    if os.getenv('SENTRY_DSN'):
        import sentry_sdk
        from sentry_sdk.integrations.flask import FlaskIntegration

        sentry_sdk.init(
            dsn=os.getenv('SENTRY_DSN'),
            environment=os.getenv('FLASK_ENV', 'production'),
            integrations=[FlaskIntegration()],
            traces_sample_rate=float(os.getenv('SENTRY_TRACES_SAMPLE_RATE', '0.1'))
        )
