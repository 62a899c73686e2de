import logging

LOG_FORMAT = '%(asctime)s - %(levelname)s - %(message)s'


def setup_logging(level: int = logging.INFO) -> None:
    """Configure the root logger. Call once from an entry point."""
    logging.basicConfig(level=level, format=LOG_FORMAT)
    logging.getLogger("image2relief").setLevel(level)
