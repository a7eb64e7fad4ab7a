import logging
import os

import click
from flask import Flask
from common.db import db
from common.errors import StoreError
from common.response import fail
from flask_jwt_extended import JWTManager
from routes.auth_routes import auth_bp
from routes.file_routes import file_bp
from routes.public_routes import public_bp
from services.edge_cache.cloudflare_cache import create_edge_cache
from services.paths import Paths
from services.storage.local_storage import LocalStorage
from services.sweeper import ExpirySweeper

logger = logging.getLogger(__name__)


def create_app(test_config=None):
    app = Flask(__name__)
    app.config.from_object('config.Config')
    if test_config:
        app.config.update(test_config)

    logging.basicConfig(
        level=app.config.get('LOG_LEVEL', 'INFO'),
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )

    db.init_app(app)
    JWTManager(app)

    app.extensions['paths'] = Paths(
        app.config['BASE_FOLDER'],
        app.config['BASE_WEB_URL'],
        app.config.get('FOLDER_PREFIX', 0),
    )
    app.extensions['local_storage'] = LocalStorage()
    app.extensions['edge_cache'] = create_edge_cache(app.config)

    @app.errorhandler(StoreError)
    def handle_store_error(e):
        if e.status >= 500:
            logger.error('Request failed: %s', e.message)
        return fail(e.message, code=e.status, status=e.status)

    app.register_blueprint(auth_bp, url_prefix='/auth')
    app.register_blueprint(file_bp, url_prefix='/v1/file')
    app.register_blueprint(public_bp)

    with app.app_context():
        db.create_all()

    sweeper = ExpirySweeper(app, app.config.get('SWEEP_INTERVAL', 60))
    app.extensions['expiry_sweeper'] = sweeper

    @app.cli.command('sweep-expired')
    def sweep_expired():
        """Delete every file whose expiry has passed."""
        count = sweeper.delete_expired_files()
        click.echo(f'Deleted {count} expired file(s)')

    @app.cli.command('run-sweeper')
    def run_sweeper():
        """Run the expiry sweeper in the foreground, one per deployment."""
        click.echo(f'Sweeping expired files every {sweeper.interval}s')
        sweeper.run()

    return app

if __name__ == "__main__":
    app = create_app()
    # 调试模式下只在重载后的子进程里启动，避免两个清理线程
    if app.config.get('SWEEPER_ENABLED') and os.environ.get('WERKZEUG_RUN_MAIN') == 'true':
        app.extensions['expiry_sweeper'].start()
    app.run(host='0.0.0.0', port=5000, debug=True)
