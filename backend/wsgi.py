# backend/wsgi.py
from festgo import create_app

app = create_app()
