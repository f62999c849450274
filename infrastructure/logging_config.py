import logging

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """Install one stream handler on the root logger (idempotent)"""
    root = logging.getLogger()
    root.setLevel(level.upper())
    if not any(getattr(h, "_booking_handler", False) for h in root.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler._booking_handler = True
        root.addHandler(handler)
