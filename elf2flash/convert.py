# convert.py
from __future__ import annotations
import logging
from pathlib import Path
from typing import BinaryIO, Optional, Tuple

from .errors import InputFileNoMemoryPagesError, OutputOverwritesInputError
from .image.elf import ByteSource, ElfImage, open_elf
from .image.pages import (
    PageMap,
    build_page_map,
    is_ram_binary,
    pad_to_sectors,
    realize_page,
    validate_ram_entry,
)
from .memory.boards import BoardProfile
from .report import ProgressSink
from .uf2.block import UF2_BLOCK_SIZE, write_blocks

log = logging.getLogger(__name__)


def build_pages(elf: ElfImage, board: BoardProfile) -> Tuple[PageMap, bool]:
    """Карта страниц для образа + признак RAM-образа."""
    segments = elf.loadable_segments()
    ram_style = board.supports_ram_binaries and is_ram_binary(
        elf.entry, segments, board.ram_ranges, board.flash_ranges
    )
    log.debug("Detected %s binary", "RAM" if ram_style else "FLASH")

    ranges = board.ram_ranges if ram_style else board.flash_ranges
    pages = build_page_map(elf.segments, ranges, board.page_size)
    if not pages:
        raise InputFileNoMemoryPagesError()

    if ram_style:
        validate_ram_entry(
            pages,
            elf.entry,
            board.page_size,
            main_ram=(board.main_ram_start, board.main_ram_end),
            xip_sram=(board.xip_sram_start, board.xip_sram_end),
        )
    else:
        added = pad_to_sectors(pages, board.flash_sector_erase_size, board.page_size)
        if added:
            log.debug("Padded %d empty pages to flash sector boundaries", added)
    return pages, ram_style


def write_output(elf: ElfImage, pages: PageMap, sink: BinaryIO, board: BoardProfile,
                 family_id: Optional[int] = None) -> int:
    page_size = board.page_size

    def read_page(addr, fragments):
        buf = bytearray(page_size)
        realize_page(elf.source, fragments, buf, page_size)
        return buf

    family = board.family_id if family_id is None else family_id
    return write_blocks(pages, sink, int(family), page_size, read_page)


def elf2uf2(source: ByteSource, sink: BinaryIO, board: BoardProfile,
            family_id: Optional[int] = None) -> int:
    """Полная конвертация на открытых потоках. Возвращает число блоков."""
    elf = open_elf(source)
    pages, _ = build_pages(elf, board)
    return write_output(elf, pages, sink, board, family_id)


def _same_file(a: Path, b: Path) -> bool:
    if a.resolve() == b.resolve():
        return True
    # жёсткие ссылки
    return a.exists() and b.exists() and a.samefile(b)


def convert_file(input_path: Path, output_path: Optional[Path], board: BoardProfile,
                 family_id: Optional[int] = None, progress: bool = False) -> dict:
    """
    Конвертировать файл в файл. Расширение выхода всегда .uf2;
    при любой ошибке недописанный выход удаляется.
    Выход, совпадающий со входом, отклоняется до открытия файлов.
    """
    input_path = Path(input_path)
    out_path = Path(output_path if output_path is not None else input_path).with_suffix(".uf2")
    if _same_file(input_path, out_path):
        raise OutputOverwritesInputError(out_path)
    family = board.family_id if family_id is None else family_id
    log.debug("Using UF2 Family 0x%08x", family)

    with open(input_path, "rb") as src:
        elf = open_elf(src)
        pages, ram_style = build_pages(elf, board)
        total = len(pages) * UF2_BLOCK_SIZE
        try:
            with open(out_path, "wb") as out:
                if progress:
                    with ProgressSink(out, total, description="Запись UF2") as sink:
                        blocks = write_output(elf, pages, sink, board, family)
                else:
                    blocks = write_output(elf, pages, out, board, family)
        except BaseException:
            out_path.unlink(missing_ok=True)
            raise

    return {
        "input": str(input_path),
        "output": str(out_path),
        "board": board.name,
        "family_id": f"0x{family:08x}",
        "blocks": blocks,
        "bytes": blocks * UF2_BLOCK_SIZE,
        "ram_style": ram_style,
    }
