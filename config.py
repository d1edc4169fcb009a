import os
from datetime import timedelta


def _env_flag(name, default="false"):
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


class Config:
    SECRET_KEY = os.getenv('SECRET_KEY', 'dev_secret_key')
    SQLALCHEMY_DATABASE_URI = os.getenv('DATABASE_URI', 'sqlite:///adb.db')
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # signed session cookie, 30 days
    SESSION_COOKIE_NAME = 'auth-session'
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = 'Lax'
    PERMANENT_SESSION_LIFETIME = timedelta(days=30)

    IS_PROD = _env_flag('PROD')
    DEV_AUTH_BYPASS = _env_flag('DEV_AUTH_BYPASS')
    LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')
    RUN_SYNC_JOBS = _env_flag('RUN_SYNC_JOBS', 'true')
    PORT = int(os.getenv('PORT', '8080'))

    URL_PATH = os.getenv('ADB_URL_PATH', 'http://localhost:8080')
    SUPPORT_EMAIL = os.getenv('SUPPORT_EMAIL', 'tech@dxe.io')
    GOOGLE_CLIENT_ID = os.getenv('GOOGLE_CLIENT_ID', '')
    IPGEOLOCATION_KEY = os.getenv('IPGEOLOCATION_KEY', '')

    # AWS SES
    AWS_ACCESS_KEY = os.getenv('AWS_ACCESS_KEY', '')
    AWS_SECRET_KEY = os.getenv('AWS_SECRET_KEY', '')
    AWS_SES_REGION = os.getenv('AWS_SES_REGION', 'us-west-2')

    # Discord bot
    DISCORD_SECRET = os.getenv('DISCORD_SECRET', '')
    DISCORD_BOT_TOKEN = os.getenv('DISCORD_BOT_TOKEN', '')
    DISCORD_GUILD_ID = os.getenv('DISCORD_GUILD_ID', '')
    DISCORD_FROM_EMAIL = os.getenv('DISCORD_FROM_EMAIL', '')

    # Survey mailer
    SURVEY_FROM_EMAIL = os.getenv('SURVEY_FROM_EMAIL', '')
    SURVEY_MISSING_EMAIL = os.getenv('SURVEY_MISSING_EMAIL', '')
    SURVEY_URL = os.getenv('SURVEY_URL', '')

    # Facebook Graph API
    FACEBOOK_API_VERSION = os.getenv('FACEBOOK_API_VERSION', 'v18.0')

    # Google Groups (working group mailing lists)
    MAILING_LIST_ACCESS_TOKEN = os.getenv('MAILING_LIST_ACCESS_TOKEN', '')

    # Sendy
    SENDY_URL = os.getenv('SENDY_URL', 'https://sendy.wayneformayor.com')
    SENDY_API_KEY = os.getenv('SENDY_API_KEY', '')
    SENDY_LIST_ALL_ADB = os.getenv('SENDY_LIST_ALL_ADB', '')
    SENDY_LIST_PUBLIC_HEALTH_ONLY = os.getenv('SENDY_LIST_PUBLIC_HEALTH_ONLY', '')
    SENDY_LIST_PUBLIC_HEALTH_CLIMATE = os.getenv('SENDY_LIST_PUBLIC_HEALTH_CLIMATE', '')
    SENDY_LIST_PUBLIC_HEALTH_HOUSING = os.getenv('SENDY_LIST_PUBLIC_HEALTH_HOUSING', '')
    SENDY_LIST_PUBLIC_HEALTH_CLIMATE_HOUSING = os.getenv('SENDY_LIST_PUBLIC_HEALTH_CLIMATE_HOUSING', '')
    SENDY_LIST_CLIMATE_ONLY = os.getenv('SENDY_LIST_CLIMATE_ONLY', '')
    SENDY_LIST_CLIMATE_HOUSING = os.getenv('SENDY_LIST_CLIMATE_HOUSING', '')
    SENDY_LIST_HOUSING_ONLY = os.getenv('SENDY_LIST_HOUSING_ONLY', '')
