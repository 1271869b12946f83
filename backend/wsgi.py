# backend/wsgi.py
from redimi import create_app

app = create_app()
