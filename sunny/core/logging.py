import logging
import sys

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def setup_logging(level: str = "INFO") -> None:
    """
    Configure le logging racine une seule fois (stdout).
    Les modules utilisent ensuite logging.getLogger(__name__).
    """
    root = logging.getLogger()
    root.setLevel(level.upper())

    if not any(getattr(h, "_sunny", False) for h in root.handlers):
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler._sunny = True  # type: ignore[attr-defined]
        root.addHandler(handler)

    # uvicorn garde ses propres handlers, on aligne juste le niveau
    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        logging.getLogger(name).setLevel(level.upper())

    # le client HTTP d'openai est très bavard en DEBUG
    logging.getLogger("httpx").setLevel(logging.WARNING)
