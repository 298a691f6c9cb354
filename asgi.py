"""
asgi.py -- Application assembly for tokengate.

This is the only module that reads process settings for the web app. It
hands them to create_app(); nothing below it looks settings up on its own.

Run with:  uvicorn asgi:app --reload
"""

from api.main import create_app
from core.config import get_settings

app = create_app(get_settings())
