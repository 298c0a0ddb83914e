"""Run the task board API with uvicorn."""

import uvicorn

from .deps import get_settings


def main() -> None:
    settings = get_settings()
    uvicorn.run(
        "taskboard.main:app",
        host=settings.app_host,
        port=settings.app_port,
        reload=settings.debug,
        log_config=None,
    )


if __name__ == "__main__":
    main()
