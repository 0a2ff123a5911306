import logging
import os

from dashboard import create_app


logging.basicConfig(level=os.environ.get("LOG_LEVEL", "INFO").upper())

app = create_app()


if __name__ == "__main__":
    debug = os.environ.get("FLASK_DEBUG", "0") in {"1", "true", "True"}
    app.run(debug=debug)
