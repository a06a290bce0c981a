"""
Local development server: ``python -m angle``.

Serves the API, the rendered pages and the preview images on
BACKEND_HOST:BACKEND_PORT, reloading on code changes in development.
"""

import uvicorn

from angle.config import settings


def main() -> None:
    uvicorn.run(
        "angle.main:app",
        host=settings.backend_host,
        port=settings.backend_port,
        reload=settings.is_development,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
