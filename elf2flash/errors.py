# errors.py
"""
Ошибки конвертера. Иерархия закрытая: вызывающий код (CLI) ловит
Elf2FlashError целиком, а тесты и внешние скрипты могут различать
конкретные случаи по классу и атрибутам.
"""
from __future__ import annotations


class Elf2FlashError(Exception):
    """Базовый класс для всех ошибок конвертации."""


class ElfFormatError(Elf2FlashError):
    """ELF не прошёл структурную проверку (магия, класс, порядок байт, машина)."""


class Uf2FormatError(Elf2FlashError):
    """Поток не похож на UF2: неполный блок или неверная магия."""


class InputFileNoMemoryPagesError(Elf2FlashError):
    def __init__(self):
        super().__init__("The input file has no memory pages")


class OutputOverwritesInputError(Elf2FlashError):
    def __init__(self, path):
        self.path = path
        super().__init__(f"Output file {path} is the input file; choose another output name")


# ---- Нарушения карты памяти устройства ----
class LayoutError(Elf2FlashError):
    pass


class SegmentInvalidForDeviceError(LayoutError):
    def __init__(self, start: int, end: int):
        self.start = start
        self.end = end
        super().__init__(
            f"Memory segment 0x{start:08x}->0x{end:08x} is outside of valid address range for device"
        )


class SegmentsOverlapError(LayoutError):
    def __init__(self, page_addr: int, page_offset: int, size: int):
        self.page_addr = page_addr
        self.page_offset = page_offset
        self.size = size
        super().__init__(
            f"In memory segments overlap at 0x{page_addr + page_offset:08x} ({size} bytes)"
        )


class ContentsForUninitializedMemoryError(LayoutError):
    def __init__(self, addr: int):
        self.addr = addr
        super().__init__(f"ELF contains memory contents for uninitialized memory at 0x{addr:08x}")


# ---- Нарушения модели запуска ----
class EntryError(Elf2FlashError):
    pass


class EntryPointNotMappedError(EntryError):
    def __init__(self, entry: int):
        self.entry = entry
        super().__init__(f"Entry point 0x{entry:08x} is not in mapped part of file")


class DirectEntryIntoXipSramError(EntryError):
    def __init__(self):
        super().__init__("B0/B1 Boot ROM does not support direct entry into XIP_SRAM")


class RamBinaryEntryPointError(EntryError):
    def __init__(self, expected: int, actual: int):
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"A RAM binary should have an entry point at the beginning: 0x{expected:08x} (not 0x{actual:08x})"
        )
