"""
hackstore - Main entry point.

Boots the store the way the hackathon server does on startup: load settings,
configure logging, make sure every store file exists with the right header,
then log a summary of what is stored.
"""

from hackstore.analytics.summary import format_summary, summarize_store
from hackstore.config.settings import Settings
from hackstore.data.integrity import IntegrityManager
from hackstore.data.repository import Repository
from hackstore.utils.logging_config import get_logger, setup_logging


def main() -> None:
    """Initialise the store and log its summary."""
    settings = Settings.from_env()

    log_dir = settings.store.log_dir if settings.logging.log_to_file else None
    setup_logging(settings.logging.level, log_dir=log_dir)
    logger = get_logger(__name__)

    logger.info("Starting hackathon store in %s", settings.store.data_dir)
    IntegrityManager(settings.store.data_dir).ensure_all()

    repository = Repository(settings.store.data_dir)
    for line in format_summary(summarize_store(repository)):
        logger.info(line)

    logger.info("Store ready.")


if __name__ == "__main__":
    main()
