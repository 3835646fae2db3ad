"""Run the QueryDesk backend with uvicorn."""

import uvicorn

from querydesk_backend.app.core.config import get_settings


def main() -> None:
    settings = get_settings()
    uvicorn.run(
        "querydesk_backend.app.main:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
