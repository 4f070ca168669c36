import logging


def configure_logging(level: int = logging.INFO) -> None:
    """
    Configure application-wide logging format and level.
    """

    logging.basicConfig(
        level=level,
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
    )
    # Statement echo is controlled by SQLALCHEMY_ECHO, not by the root level.
    logging.getLogger("sqlalchemy.engine").setLevel(max(level, logging.WARNING))
