"""Process entry point.

uvicorn handles SIGINT/SIGTERM; the application lifespan then drains the
job queue before the process exits.
"""

import uvicorn

from ..shared.config import get_settings
from .app import create_app


def main() -> None:
    settings = get_settings()
    uvicorn.run(
        create_app(settings),
        host="0.0.0.0",
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
