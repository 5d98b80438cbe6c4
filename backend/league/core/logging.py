import logging


def setup_logging(level: str = "INFO", is_dev: bool = False) -> None:
    """
    App logs at `level` (DEBUG in dev); library chatter at WARNING+.
    """
    app_level = logging.DEBUG if is_dev else getattr(logging, level.upper(), logging.INFO)

    logging.basicConfig(
        level=app_level,
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )

    for name in (
        "sqlalchemy",
        "sqlalchemy.engine",
        "sqlalchemy.pool",
        "alembic",
        "httpx",
        "httpcore",
        "psycopg2",
    ):
        logging.getLogger(name).setLevel(logging.WARNING)
