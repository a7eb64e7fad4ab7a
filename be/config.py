import os


def _env_bool(name, default):
    return os.getenv(name, str(default)).lower() in ('1', 'true', 'yes')


class Config:
    SECRET_KEY = os.getenv('SECRET_KEY', 'super-secret')
    JWT_SECRET_KEY = os.getenv('JWT_SECRET', 'jwt-secret')
    JWT_ACCESS_TOKEN_EXPIRES = False

    SQLALCHEMY_DATABASE_URI = os.getenv('DATABASE_URL', 'sqlite:///notes.db')
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # userfiles/ is created under this folder
    BASE_FOLDER = os.getenv('BASE_FOLDER', os.getcwd())
    BASE_WEB_URL = os.getenv('BASE_WEB_URL', '').rstrip('/')
    HASH_SALT = os.getenv('HASH_SALT', '')
    # Number of filename characters used as the shard subfolder, 0 disables sharding
    FOLDER_PREFIX = int(os.getenv('FOLDER_PREFIX', '0'))

    # Cloudflare cache purge; leave empty to disable
    CLOUDFLARE_ZONE_ID = os.getenv('CLOUDFLARE_ZONE_ID', '')
    CLOUDFLARE_API_TOKEN = os.getenv('CLOUDFLARE_API_TOKEN', '')
    CLOUDFLARE_API_BASE = os.getenv('CLOUDFLARE_API_BASE', 'https://api.cloudflare.com/client/v4')
    PURGE_TIMEOUT = float(os.getenv('PURGE_TIMEOUT', '10'))

    # Background sweeper for the development server; deployments run `flask run-sweeper` once
    SWEEPER_ENABLED = _env_bool('SWEEPER_ENABLED', True)
    SWEEP_INTERVAL = int(os.getenv('SWEEP_INTERVAL', '60'))

    MAX_CONTENT_LENGTH = int(os.getenv('MAX_UPLOAD_BYTES')) if os.getenv('MAX_UPLOAD_BYTES') else None
    LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')
