import os
from dotenv import load_dotenv

load_dotenv()

class Config:
    """League configuration settings"""

    # Database settings
    DATABASE_URL = os.getenv('DATABASE_URL', 'sqlite:///league.db')

    # Runtime settings
    DEBUG = os.getenv('DEBUG', 'False').lower() == 'true'
    LOG_DIR = os.getenv('LOG_DIR', 'logs')
    LOG_TO_FILE = os.getenv('LOG_TO_FILE', 'True').lower() == 'true'

    # Category policy: opaque strings unless validation is switched on
    VALIDATE_CATEGORIES = os.getenv('VALIDATE_CATEGORIES', 'False').lower() == 'true'
    ALLOWED_CATEGORIES = os.getenv(
        'ALLOWED_CATEGORIES',
        'Mayores,Sub-21,Sub-19,Sub-15,Sub-13,Libre'
    )

    @classmethod
    def get_allowed_categories(cls):
        """Get list of allowed tournament/player categories"""
        return [
            category.strip()
            for category in cls.ALLOWED_CATEGORIES.split(',')
            if category.strip()
        ]

    @classmethod
    def get_async_database_url(cls, database_url: str = None) -> str:
        """Convert a plain sqlite URL to its aiosqlite form"""
        url = database_url or cls.DATABASE_URL
        if url.startswith('sqlite:///'):
            url = url.replace('sqlite:///', 'sqlite+aiosqlite:///')
        return url

    @classmethod
    def validate(cls):
        """Validate that configuration is consistent"""
        if not cls.DATABASE_URL:
            raise ValueError("DATABASE_URL is required")
        if cls.VALIDATE_CATEGORIES and not cls.get_allowed_categories():
            raise ValueError("ALLOWED_CATEGORIES must list at least one category when VALIDATE_CATEGORIES is on")
