# image/pages.py
"""
Раскладка сегментов ELF по страницам UF2.

Порядок работы:
- is_ram_binary()       — RAM- или Flash-образ, по точке входа;
- build_page_map()      — фрагменты страниц + проверка перекрытий;
- pad_to_sectors()      — для Flash: пустые страницы до границ секторов;
- validate_ram_entry()  — для RAM: вход должен быть в начале образа;
- realize_page()        — собрать байты одной страницы из файла.
"""
from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from ..errors import (
    DirectEntryIntoXipSramError,
    ElfFormatError,
    EntryPointNotMappedError,
    RamBinaryEntryPointError,
    SegmentsOverlapError,
)
from ..memory.address_range import AddressRange, RangeKind, classify, is_address_initialized
from .elf import ByteSource, Segment

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class PageFragment:
    segment: int       # индекс сегмента-источника
    file_offset: int
    page_offset: int
    size: int

    @property
    def page_end(self) -> int:
        return self.page_offset + self.size


# адрес страницы -> фрагменты; пустой список = страница из нулей
PageMap = Dict[int, List[PageFragment]]


def is_ram_binary(entry: int, segments: Iterable[Segment],
                  ram_ranges: Optional[Sequence[AddressRange]],
                  flash_ranges: Sequence[AddressRange]) -> bool:
    """
    Точку входа переводим из VADDR в PADDR: RAM-образы часто слинкованы
    по одному адресу, а грузятся с другого.
    """
    if ram_ranges is None:
        return False

    for seg in segments:
        if not seg.is_loadable or seg.mapped_size == 0:
            continue
        if not (seg.vaddr <= entry < seg.vaddr + seg.mapped_size):
            continue
        effective_entry = entry + seg.paddr - seg.vaddr
        if is_address_initialized(ram_ranges, effective_entry):
            return True
        if is_address_initialized(flash_ranges, effective_entry):
            return False
        break

    raise EntryPointNotMappedError(entry)


def _check_overlap(page_addr: int, fragments: List[PageFragment], off: int, size: int):
    for f in fragments:
        if (off < f.page_end) != (off + size <= f.page_offset):
            raise SegmentsOverlapError(page_addr, off, size)


def build_page_map(segments: Sequence[Segment], ranges: Sequence[AddressRange],
                   page_size: int) -> PageMap:
    pages: PageMap = {}

    for index, seg in enumerate(segments):
        if not seg.is_loadable:
            continue

        mapped_size = seg.mapped_size
        if mapped_size > 0:
            ar = classify(ranges, seg.paddr, mapped_size, uninitialized=False)
            # IGNORE: например, bootrom в RAM-образе — не скачиваем
            if ar.kind is not RangeKind.CONTENTS:
                log.debug("ignored segment 0x%08x->0x%08x", seg.paddr, seg.paddr + mapped_size)
            else:
                addr = seg.paddr
                remaining = mapped_size
                file_offset = seg.file_offset
                while remaining > 0:
                    off = addr % page_size
                    size = min(remaining, page_size - off)
                    page_addr = addr - off
                    fragments = pages.setdefault(page_addr, [])
                    _check_overlap(page_addr, fragments, off, size)
                    fragments.append(PageFragment(index, file_offset, off, size))
                    addr += size
                    file_offset += size
                    remaining -= size

        if seg.mem_size > seg.file_size:
            # BSS: обнуляет crt0, сами байты не качаем, только проверяем адреса
            classify(ranges, seg.paddr + seg.file_size, seg.mem_size - seg.file_size,
                     uninitialized=True)

    return pages


def pad_to_sectors(pages: PageMap, sector_size: int, page_size: int) -> int:
    """
    Bootrom считает сектор для стирания по номеру блока, поэтому каждый
    затронутый сектор должен быть представлен целиком. Последний сектор
    не добиваем, чтобы не раздувать обычные образы.
    Возвращает число добавленных пустых страниц.
    """
    if not pages:
        return 0
    last_page_addr = max(pages)
    touched_sectors = {addr // sector_size for addr in pages}
    added = 0
    for sector in sorted(touched_sectors):
        page = sector * sector_size
        while page < (sector + 1) * sector_size:
            if page < last_page_addr and page not in pages:
                pages[page] = []
                added += 1
            page += page_size
    return added


def validate_ram_entry(pages: PageMap, entry: int, page_size: int,
                       main_ram: Tuple[int, int], xip_sram: Tuple[int, int]):
    main_ram_start, main_ram_end = main_ram
    xip_sram_start, xip_sram_end = xip_sram
    assert main_ram_start % page_size == 0

    main_ram_candidates = [a for a in pages if main_ram_start <= a <= main_ram_end]
    xip_sram_candidates = [a for a in pages
                           if not main_ram_start <= a <= main_ram_end
                           and xip_sram_start <= a < xip_sram_end]

    if main_ram_candidates:
        expected = min(main_ram_candidates) | 0x1
    elif xip_sram_candidates:
        raise DirectEntryIntoXipSramError()
    else:
        raise EntryPointNotMappedError(entry)

    if entry != expected:
        raise RamBinaryEntryPointError(expected, entry)

    # TODO: проверить таблицу векторов, когда станет известно, где reset-вектор


def realize_page(source: ByteSource, fragments: Iterable[PageFragment],
                 buf: bytearray, page_size: int):
    """Заполнить buf байтами страницы. Обнуление buf — на вызывающем."""
    assert len(buf) >= page_size
    for frag in fragments:
        assert 0 <= frag.page_offset < page_size and frag.page_end <= page_size
        source.seek(frag.file_offset)
        data = source.read(frag.size)
        if len(data) != frag.size:
            raise ElfFormatError(
                f"Unexpected end of file reading 0x{frag.size:x} bytes at offset 0x{frag.file_offset:x}"
            )
        buf[frag.page_offset:frag.page_end] = data
