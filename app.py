from flask import Flask, jsonify
from config import Config
from database import db, init_db
from routes import register_routes
from models.project import Project
from security import init_security, logger
from production import init_production
import click
import os
import time

def create_app(config_class=Config):
    app = Flask(__name__)
    app.config.from_object(config_class)

    # Registra tempo de início para uptime
    app.start_time = time.time()

    # Inicializa banco de dados
    init_db(app)

    # Inicializa segurança (CORS, Rate Limit, Cache)
    init_security(app)

    # Inicializa configurações de produção se necessário
    if app.config.get('PRODUCTION'):
        init_production(app)

    # Registra rotas
    register_routes(app)

    @app.route('/health')
    def health():
        try:
            # Testa conexão com o banco
            Project.query.first()
            return jsonify({
                'status': 'healthy',
                'database': 'connected',
                'environment': 'production' if app.config.get('PRODUCTION') else 'development',
                'uptime': f"{time.time() - app.start_time:.2f}s"
            })
        except Exception as e:
            logger.error("health_check_failed", error=str(e))
            return jsonify({'status': 'unhealthy', 'error': str(e)}), 500

    @app.route('/api/status')
    def api_status():
        return jsonify({
            'status': 'online',
            'service': 'contribution-checkout',
            'version': '1.0.0',
            'minimum_value': float(app.config['MINIMUM_CONTRIBUTION_VALUE'])
        })

    @app.cli.command('notify-pending-refunds')
    @click.option('--interval-days', default=None, type=int,
                  help='Dias mínimos desde a última notificação enviada')
    def notify_pending_refunds(interval_days):
        """Avisa apoiadores de boletos de projetos não financiados sem conta bancária"""
        from services.notification_service import NotificationService
        interval = interval_days or app.config['PENDING_REFUND_NOTIFY_INTERVAL_DAYS']
        ids = NotificationService().deliver_pending_refund_notices(interval_days=interval)
        click.echo(f"✅ Notificações enviadas: {len(ids)}")

    @app.cli.command('seed')
    def seed():
        """Cria dados de exemplo para desenvolvimento"""
        from init_db import init_sample_data
        init_sample_data()
        click.echo("✅ Dados de exemplo inicializados com sucesso!")

    return app

app = create_app()

if __name__ == '__main__':
    port = int(os.environ.get('PORT', 5000))
    debug = not app.config.get('PRODUCTION')
    app.run(host='0.0.0.0', port=port, debug=debug)
