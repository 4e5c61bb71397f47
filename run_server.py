import uvicorn

from owm_relay.config import settings
from utils.logging_utils import get_tagged_logger, setup_logging

logger = get_tagged_logger(__name__, tag="server")


if __name__ == "__main__":
    setup_logging(level=settings.log_level, job_name="owm_relay")
    logger.info("Starting relay on port %d", settings.port)

    uvicorn.run(
        "owm_relay.main:app",
        host="0.0.0.0",
        port=settings.port,
        reload=False,
    )
