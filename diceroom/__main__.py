from __future__ import annotations

from .app import app, configure_logging
from .config import settings


def main() -> None:  # pragma: no cover - runner
    import uvicorn

    configure_logging(settings.log_level)
    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())


if __name__ == "__main__":  # pragma: no cover
    main()
