# image/elf.py
from __future__ import annotations
from dataclasses import dataclass
from typing import List, Protocol

from elftools.common.exceptions import ELFError
from elftools.elf.elffile import ELFFile

from ..errors import ElfFormatError

SUPPORTED_MACHINES = ("EM_ARM", "EM_RISCV")


# ---- Источник байтов: открытый файл, BytesIO и т.п. ----
class ByteSource(Protocol):
    def seek(self, offset: int, whence: int = 0) -> int: ...
    def read(self, size: int = -1) -> bytes: ...


@dataclass(frozen=True)
class Segment:
    kind: str  # 'PT_LOAD', 'PT_NOTE', ... как их называет pyelftools
    vaddr: int
    paddr: int
    file_offset: int
    file_size: int
    mem_size: int

    @property
    def is_loadable(self) -> bool:
        return self.kind == "PT_LOAD" and self.mem_size > 0

    @property
    def mapped_size(self) -> int:
        return min(self.file_size, self.mem_size)


@dataclass
class ElfImage:
    """
    Разобранный заголовок ELF + поток, из которого потом читаются
    байты страниц. Поток не закрывается здесь: им владеет вызывающий.
    """
    source: ByteSource
    entry: int
    machine: str
    segments: List[Segment]

    def loadable_segments(self) -> List[Segment]:
        return [s for s in self.segments if s.is_loadable]


def open_elf(source: ByteSource) -> ElfImage:
    try:
        elf = ELFFile(source)
        if elf.elfclass != 32:
            raise ElfFormatError(f"Only ELF32 images are supported (got ELF{elf.elfclass})")
        if not elf.little_endian:
            raise ElfFormatError("Only little-endian ELF images are supported")
        machine = elf["e_machine"]
        if machine not in SUPPORTED_MACHINES:
            raise ElfFormatError(f"Unsupported ELF machine: {machine}")
        segments = [
            Segment(
                kind=seg["p_type"],
                vaddr=seg["p_vaddr"],
                paddr=seg["p_paddr"],
                file_offset=seg["p_offset"],
                file_size=seg["p_filesz"],
                mem_size=seg["p_memsz"],
            )
            for seg in elf.iter_segments()
        ]
    except ELFError as e:
        raise ElfFormatError(f"Failed to open elf file: {e}") from e
    return ElfImage(source=source, entry=elf["e_entry"], machine=machine, segments=segments)
