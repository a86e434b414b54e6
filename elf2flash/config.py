import os
from pathlib import Path

APP_NAME = "elf2flash"

LOG_DIR = Path(os.environ.get("ELF2FLASH_LOG_DIR", Path.home() / f".{APP_NAME}" / "logs"))
LOG_FILE = LOG_DIR / "session.jsonl"

# плата по умолчанию; cargo-раннеры задают её через окружение
DEFAULT_BOARD = os.environ.get("ELF2FLASH_BOARD", "rp2040")
