"""Application entrypoint for the KUMBAM API."""
from __future__ import annotations

import os

from kumbam_ext import create_app

app = create_app()


if __name__ == "__main__":
    # Handy during development; production should run wsgi.py under a WSGI server.
    app.run(use_reloader=False, host="0.0.0.0", port=int(os.getenv("PORT", "5000")))
