# backend/wsgi.py
import sys

from brewops import create_app, verify_database_connection

app = create_app()

if not verify_database_connection(app):
    app.logger.critical("Failed to connect to database; check DATABASE_URL")
    sys.exit(1)


if __name__ == "__main__":
    app.run(port=5000)
