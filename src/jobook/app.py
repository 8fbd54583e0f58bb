from typing import Optional

from flask import Flask, abort, send_from_directory
from flask_cors import CORS

from .config import Settings, load_settings
from .db import close_db, init_db
from .errors import register_error_handlers
from .gemini_client import GeminiClient
from .log import configure_logging
from .recommender import Recommender
from .routes import BLUEPRINTS
from .storage import ensure_dirs, resolve_public_url


def create_app(settings: Optional[Settings] = None, gemini: Optional[GeminiClient] = None) -> Flask:
    settings = settings or load_settings()
    configure_logging(settings.log_level)

    app = Flask(__name__)
    app.config['SECRET_KEY'] = settings.secret_key
    app.config['MAX_CONTENT_LENGTH'] = settings.max_content_length
    app.config['JOBOOK_SETTINGS'] = settings
    app.json.ensure_ascii = False

    gemini = gemini or GeminiClient.from_settings(settings)
    app.extensions['jobook.gemini'] = gemini
    app.extensions['jobook.recommender'] = Recommender(gemini, model=settings.ranking_model)

    CORS(app)
    register_error_handlers(app)
    app.teardown_appcontext(close_db)

    init_db(settings.db_path)
    ensure_dirs(settings.upload_dir)

    for bp in BLUEPRINTS:
        app.register_blueprint(bp, url_prefix=f'/api{bp.url_prefix or ""}')

    @app.get('/uploads/<path:path>')
    def uploads(path: str):
        target = resolve_public_url(f'/uploads/{path}')
        if target is None or not target.is_file():
            abort(404)
        return send_from_directory(target.parent, target.name)

    @app.get('/api/health')
    def health():
        return {'ok': True, 'gemini': gemini.enabled()}

    if not gemini.enabled():
        app.logger.info('GEMINI_API_KEY not set; AI features will use fallbacks or report unavailable.')
    return app


def run(settings: Optional[Settings] = None):
    settings = settings or load_settings()
    app = create_app(settings)
    app.run(host=settings.host, port=settings.port, debug=False)


if __name__ == '__main__':
    run()
