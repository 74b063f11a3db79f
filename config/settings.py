"""
Configuration settings for Footfall Forecast
"""

import os


def _env_int(name, default=None):
    value = os.environ.get(name)
    if value is None or value == '':
        return default
    return int(value)


class Config:
    """Base configuration"""
    # App
    APP_NAME = "Footfall Forecast"
    SECRET_KEY = os.environ.get('SECRET_KEY', 'dev-secret-key-change-in-production')
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')

    # Rate limiting
    RATELIMIT_ENABLED = True
    RATELIMIT_DEFAULT = "100 per minute"
    RATELIMIT_STORAGE_URI = os.environ.get('REDIS_URL', 'memory://')

    # File upload
    MAX_CONTENT_LENGTH = 2 * 1024 * 1024  # 2MB max file size
    ALLOWED_EXTENSIONS = {'csv', 'tsv', 'txt'}

    # Forecasting
    DEFAULT_MODEL = 'linear'
    DEFAULT_HORIZON = 14
    MAX_HORIZON = 365
    DEFAULT_MA_WINDOW = 7
    SMOOTHING_ALPHA = 0.35
    MIN_TRAINING_POINTS = 3

    # Sample dataset
    SAMPLE_START_DATE = '2022-01-01'
    SAMPLE_DAYS = 1000
    SAMPLE_SEED = _env_int('SAMPLE_SEED')

    # Export
    EXPORT_FILENAME = 'footfall_export.csv'

    # Forecast sessions (in memory)
    SESSION_IDLE_SECONDS = _env_int('SESSION_IDLE_SECONDS', 2 * 60 * 60)
    MAX_SESSIONS = _env_int('MAX_SESSIONS', 1000)


class DevelopmentConfig(Config):
    """Development configuration"""
    DEBUG = True
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'DEBUG')


class ProductionConfig(Config):
    """Production configuration"""
    DEBUG = False
    SECRET_KEY = os.environ.get('SECRET_KEY')


class TestingConfig(Config):
    """Testing configuration"""
    TESTING = True
    RATELIMIT_ENABLED = False
    SECRET_KEY = 'testing-secret-key'
    SAMPLE_DAYS = 120
    SAMPLE_SEED = 7


# Config mapping
config = {
    'development': DevelopmentConfig,
    'production': ProductionConfig,
    'testing': TestingConfig,
    'default': DevelopmentConfig
}


def get_config():
    """Get config based on environment"""
    env = os.environ.get('FLASK_ENV', 'development')
    config_class = config.get(env, config['default'])

    # Ensure secret key is set in production
    if config_class is ProductionConfig and not config_class.SECRET_KEY:
        raise ValueError("SECRET_KEY must be set in production")

    return config_class
