# levelgen_core/setup_logging.py
import logging
import sys
from pathlib import Path

LOG_FORMAT = "%(asctime)s.%(msecs)03d [%(levelname)s] %(name)s:%(lineno)d | %(message)s"


def setup_logging(level: int = logging.INFO, log_file: str | Path | None = "logs/levelgen.log"):
    """
    Глобальная настройка логов для запуска генератора:
    консоль (stdout) и, если задан log_file, файл (перезаписывается при каждом запуске).
    """
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_file is not None:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.insert(0, logging.FileHandler(log_file, mode="w", encoding="utf-8"))

    logging.basicConfig(level=level, format=LOG_FORMAT, datefmt="%H:%M:%S", handlers=handlers, force=True)

    # numba пишет на DEBUG каждую компиляцию, PIL - каждый открытый плагин
    logging.getLogger("levelgen_core").setLevel(level)
    for noisy in ("numba", "PIL"):
        logging.getLogger(noisy).setLevel(logging.WARNING)
