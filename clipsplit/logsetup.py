import logging
from pathlib import Path
from typing import Optional


def setup_logging(debug: bool = False, log_path: Optional[Path] = None) -> logging.Logger:
    """
    Configure logging for clipsplit.

    Args:
        debug: If True, log at DEBUG level (includes full ffmpeg commands)
        log_path: Optional log file; stderr is used when omitted
    """
    level = logging.DEBUG if debug else logging.INFO

    if log_path:
        log_file = Path(log_path)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handler: logging.Handler = logging.FileHandler(log_file)
    else:
        handler = logging.StreamHandler()

    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(levelname)s - %(message)s',
        handlers=[handler],
        force=True  # Override any existing configuration
    )

    logger = logging.getLogger("clipsplit")
    logger.debug(f"Logging initialized: {log_path or 'stderr'} (debug={'ON' if debug else 'OFF'})")
    return logger
