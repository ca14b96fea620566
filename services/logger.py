import logging
import sys
from typing import Optional

_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
_ROOT_NAME = "attendance"


def configure_logging(level: str = "INFO", log_file: Optional[str] = None) -> None:
    """アプリ全体のロガー設定（コンソール + 任意のファイル出力）"""
    root = logging.getLogger(_ROOT_NAME)
    root.setLevel(logging.DEBUG)
    root.handlers.clear()

    formatter = logging.Formatter(fmt=_FORMAT, datefmt=_DATE_FORMAT)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(getattr(logging, str(level).upper(), logging.INFO))
    console_handler.setFormatter(formatter)
    root.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)


def get_logger(name: str) -> logging.Logger:
    """attendance.<name> ロガーを返す"""
    return logging.getLogger(f"{_ROOT_NAME}.{name}")
