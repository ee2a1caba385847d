"""Process entry point.

``uvicorn apps.chat_api.main:app`` serves the module-level application.  The
settings are validated on import, so a missing required variable stops the
process before it binds a port.
"""

import uvicorn

from apps.chat_api import create_app
from lib.config.settings import load_settings

settings = load_settings()
app = create_app(settings)


def run() -> None:
    uvicorn.run(app, host="0.0.0.0", port=settings.port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    run()
