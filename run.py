"""Local development entry point.

Usage:
    python run.py

Reads .env (DATABASE_URL, SECRET_KEY, LOG_LEVEL, ...) before building the app.
"""

from dotenv import load_dotenv

load_dotenv()  # Load .env before anything else

from marketplace import create_app  # noqa: E402

app = create_app()

if __name__ == "__main__":
    app.run(debug=True, host="0.0.0.0", port=5000)
