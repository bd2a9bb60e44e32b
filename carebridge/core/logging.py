import logging

from carebridge.core import config

LOG_FORMAT = '%(asctime)s %(levelname)s %(name)s %(message)s'


def setup_logging() -> None:
    level = getattr(logging, config.LOG_LEVEL.upper(), logging.INFO)
    logging.basicConfig(level=level, format=LOG_FORMAT)
    # SQL echo stays off unless explicitly debugging.
    logging.getLogger('sqlalchemy.engine').setLevel(logging.INFO if config.DEBUG else logging.WARNING)
