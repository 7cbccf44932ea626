import logging
import sys
from pathlib import Path
from typing import Optional

from loguru import logger


def _is_tx_record(record) -> bool:
    return bool(record["extra"].get("tx_event"))


def _tx_format(record) -> str:
    contract = record["extra"].get("contract", "CHAIN")
    return "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | " + contract + " | {message}\n"


def configure_logging(level: str = "INFO", log_file: Optional[str] = "logs/tokenforge.log") -> None:
    """
    Configure loguru with console logging and, when ``log_file`` is set,
    a rotating main log plus a transactions-only log beside it.

    Args:
        level: Console log level
        log_file: Path of the main log file; empty or None disables file logging
    """
    logger.remove()

    logger.add(
        sys.stderr,
        level=level,
        format="<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
               "<level>{level: <8}</level> | "
               "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
               "<level>{message}</level>",
        colorize=True,
    )

    if not log_file:
        return

    log_path = Path(log_file)
    log_path.parent.mkdir(parents=True, exist_ok=True)

    logger.add(
        log_path,
        level="DEBUG",
        format="{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {name}:{function}:{line} | {message}",
        rotation="50 MB",
        retention="7 days",
        compression="zip",
        enqueue=True,
    )

    # Mined and reverted transactions only
    logger.add(
        log_path.with_name("transactions.log"),
        level="INFO",
        format=_tx_format,
        filter=_is_tx_record,
        rotation="10 MB",
        retention="30 days",
        compression="zip",
        enqueue=True,
    )

    logger.info(f"Logging configured - level {level}, file {log_path.absolute()}")


def get_tx_logger(contract: str):
    """
    Get a logger bound for transaction events.

    Args:
        contract: Name shown in the transactions log (e.g. "LocalChain")

    Returns:
        Loguru logger with transaction context
    """
    return logger.bind(contract=contract, tx_event=True)


class InterceptHandler(logging.Handler):
    """Redirect standard logging records (requests/urllib3) to loguru"""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        # Find the caller outside of the logging module
        frame, depth = logging.currentframe(), 2
        while frame and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


def setup_standard_logging_intercept(level: int = logging.INFO) -> None:
    logging.basicConfig(handlers=[InterceptHandler()], level=level, force=True)
    for name in ("urllib3", "requests"):
        std_logger = logging.getLogger(name)
        std_logger.handlers = [InterceptHandler()]
        std_logger.propagate = False
