import uvicorn

from livetimers import create_app
from livetimers.core.config import settings
from livetimers.core.logging import configure_logging

configure_logging(settings.LOG_LEVEL)
app = create_app(settings)


def run() -> None:
    uvicorn.run(app, host=settings.HOST, port=settings.PORT, log_config=None)


if __name__ == "__main__":
    run()
