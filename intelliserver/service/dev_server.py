from __future__ import annotations

import uvicorn

from intelliserver.base.logging import configure_logger
from intelliserver.config import load_settings


def main() -> None:
    """Start the development server for the intelliserver FastAPI app.

    Host, port and reload come from ``ServiceSettings``:

    - INTELLISERVER_HOST: interface to bind (default "127.0.0.1")
    - INTELLISERVER_PORT: port to bind (default 3000)
    - INTELLISERVER_RELOAD: "true"/"false" to toggle auto-reload (default false)

    The app itself is built by the ``create_app`` factory inside the server
    process, so reload workers pick up the same configuration sources.
    """
    settings = load_settings()
    configure_logger(level=settings.log_level, file_path=settings.log_file, json_mode=settings.log_json)
    uvicorn.run(
        "intelliserver.service.app:create_app",
        factory=True,
        host=settings.host,
        port=settings.port,
        reload=settings.reload,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
