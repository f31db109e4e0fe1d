"""
WSGI entry point for the journal (gunicorn wsgi:application)
"""
import os

from app import create_app

# JOURNAL_CONFIG lets a staging box run with development settings
application = create_app(os.environ.get('JOURNAL_CONFIG', 'production'))

if __name__ == "__main__":
    application.run(host=os.environ.get('HOST', '127.0.0.1'), port=int(os.environ.get('PORT', 5000)))
