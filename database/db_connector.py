import os
import logging

from sqlalchemy.engine import URL

logger = logging.getLogger(__name__)


def _postgres_uri(raw_uri: str) -> str:
    """
    Forces the pg8000 driver onto a plain postgres:// or postgresql:// URI.
    """
    for prefix in ("postgres://", "postgresql://"):
        if raw_uri.startswith(prefix):
            return "postgresql+pg8000://" + raw_uri[len(prefix):]
    return raw_uri


def configure_database(app):
    """
    Configures the Flask app's database settings based on DB_BACKEND.
    DATABASE_URI, when set, wins over the backend selection (tests use 'sqlite://').
    """
    explicit_uri = os.getenv('DATABASE_URI')
    backend = os.getenv('DB_BACKEND', 'local').lower()

    if explicit_uri:
        logger.info("Using DATABASE_URI from environment")
        app.config['SQLALCHEMY_DATABASE_URI'] = _postgres_uri(explicit_uri)

    elif backend == 'local':
        logger.info("Using Local SQLite Database")
        basedir = os.path.abspath(os.path.dirname(os.path.dirname(__file__)))
        db_path = os.path.join(basedir, 'recipes.db')
        app.config['SQLALCHEMY_DATABASE_URI'] = f'sqlite:///{db_path}'

    elif backend == 'postgres':
        logger.info("Using Postgres (pg8000)")

        # Validation
        required_vars = ["DB_HOST", "DB_USER", "DB_NAME"]
        missing = [v for v in required_vars if not os.getenv(v)]
        if missing:
            raise ValueError(f"DB_BACKEND=postgres but missing env vars: {missing}")

        user = os.getenv("DB_USER")
        password = os.getenv("DB_PASS", "")
        host = os.getenv("DB_HOST")
        port = os.getenv("DB_PORT", "5432")
        name = os.getenv("DB_NAME")
        # URL.create escapes reserved characters in the credentials
        url = URL.create(
            "postgresql+pg8000",
            username=user,
            password=password or None,
            host=host,
            port=int(port),
            database=name,
        )
        app.config["SQLALCHEMY_DATABASE_URI"] = url.render_as_string(hide_password=False)
        app.config['SQLALCHEMY_ENGINE_OPTIONS'] = {
            "pool_size": 20,
            "pool_recycle": 1800,
            "pool_pre_ping": True,
        }
    else:
        raise ValueError(f"Unknown DB_BACKEND: {backend}")
