import logging
import uvicorn

from tokencat import config
from tokencat.logging_setup import setup_logging

logger = logging.getLogger("tokencat")


def main():
    setup_logging()
    logger.info(f"Server is listening on port {config.PORT}")
    uvicorn.run("tokencat.api:app", host="0.0.0.0", port=config.PORT, log_config=None)


if __name__ == "__main__":
    main()
