"""Run the API with uvicorn: ``python -m render_api``."""

import uvicorn

from render_api.config import settings


def main() -> None:
    uvicorn.run(
        "render_api.main:app",
        host=settings.HOST,
        port=settings.PORT,
        # Lifespan shutdown closes the browser on SIGTERM/SIGINT
        timeout_graceful_shutdown=10,
    )


if __name__ == "__main__":
    main()
