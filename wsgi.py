"""
WSGI entry point.

Usage:
    gunicorn wsgi:app
    python wsgi.py          # development server on PORT (default 3333)
"""

from dotenv import load_dotenv

load_dotenv()

from isms_export import create_app  # noqa: E402

app = create_app()

if __name__ == "__main__":
    app.run(host="0.0.0.0", port=app.config["PORT"])
