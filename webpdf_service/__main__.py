"""
Web PDF Service entrypoint - runs the uvicorn server.
"""

import uvicorn

from .config import get_settings


def main() -> None:
    settings = get_settings()
    uvicorn.run(
        "webpdf_service.app:app",
        host=settings.host,
        port=settings.port,
        timeout_keep_alive=settings.keep_alive_timeout,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
