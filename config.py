"""Configuration module for Flask application."""
import os
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


class Config:
    """Base configuration class."""

    # Flask
    SECRET_KEY = os.getenv('SECRET_KEY', 'dev-secret-key-change-in-production')
    DEBUG = os.getenv('FLASK_DEBUG', '1') == '1'
    ENV = os.getenv('FLASK_ENV', 'development')
    TESTING = False

    # Session Configuration (Production-safe defaults)
    # The API token, the order-builder cart and the remembered draft item order live here
    SESSION_COOKIE_SECURE = os.getenv('SESSION_COOKIE_SECURE', 'false').lower() == 'true'
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = os.getenv('SESSION_COOKIE_SAMESITE', 'Lax')
    PERMANENT_SESSION_LIFETIME = 86400  # 24 hours

    # Remote bookstore REST API
    BOOKSTORE_API_BASE = os.getenv('BOOKSTORE_API_BASE', 'http://localhost:8080')
    API_TIMEOUT = float(os.getenv('API_TIMEOUT', '10'))  # seconds
    # Prefix for relative cover image paths; empty keeps them root-relative
    PUBLIC_ASSET_BASE = os.getenv('PUBLIC_ASSET_BASE', '')

    # Pricing display
    CURRENCY_SYMBOL = os.getenv('CURRENCY_SYMBOL', '$')
    # Documented only: the USED discount is fixed at 50% in pricing_service
    USED_DISCOUNT_RATE = '0.5'

    # Redis Cache Configuration
    # Shared cache for catalog lookups used by cover-image enrichment
    REDIS_URL = os.getenv('REDIS_URL', 'redis://redis:6379/0')
    CACHE_ENABLED = os.getenv('CACHE_ENABLED', 'true').lower() == 'true'
    CACHE_DEFAULT_TTL = int(os.getenv('CACHE_DEFAULT_TTL', '60'))  # seconds
    CACHE_CATALOG_TTL = int(os.getenv('CACHE_CATALOG_TTL', '300'))
    CACHE_KEY_PREFIX = os.getenv('CACHE_KEY_PREFIX', 'bookstore')
