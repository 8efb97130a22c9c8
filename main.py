"""
boxoffice: ticket checkout pricing service
-------------------------------------------
Run:
  python main.py
Then POST to http://127.0.0.1:5000/checkout/quote

Settings and reports need the X-API-KEY header (API_KEY env var).
"""
import logging
import os

from boxoffice import create_app

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO"),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = create_app()

if __name__ == "__main__":
    app.run(debug=os.getenv("FLASK_DEBUG") == "1")
