import logging

from forkooor.config.settings import settings

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(name)s - %(message)s"


def setup_logging(level: str = None) -> None:
    """Configure the root logger once for the whole process."""
    logging.basicConfig(level=level or settings.log_level, format=LOG_FORMAT)
    # web3/urllib3 are chatty at DEBUG
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    logging.getLogger("web3").setLevel(logging.WARNING)
