"""
asgi.py -- Process entry point for Taskboard.

Builds the module-level ASGI app from the environment-derived Settings and
provides main() for the `taskboard` console script.

Run with:  taskboard
           uvicorn asgi:app --reload
"""

import uvicorn

from api.main import create_app
from core.config import get_settings

app = create_app(get_settings())


def main() -> None:
    """Serve the app with uvicorn on HOST:PORT from the settings."""
    settings = get_settings()
    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    main()
