"""Run the billing API with uvicorn: ``python -m borewell_ops``."""

import uvicorn

from .config import get_settings
from .logging_conf import configure_logging
from .services.billing_api import create_app


def main():
    settings = get_settings()
    configure_logging(settings.LOG_LEVEL, json_output=settings.LOG_JSON)
    uvicorn.run(
        create_app(settings),
        host=settings.SERVER_HOST,
        port=settings.SERVER_PORT,
        reload=False,
    )


if __name__ == "__main__":
    main()
