import io
import struct

import pytest

EM_ARM = 40
EM_RISCV = 243
EM_386 = 3
PT_LOAD = 1
PT_NOTE = 4


def build_elf(entry, segments, machine=EM_ARM, endian="<", magic=b"\x7fELF"):
    """
    Собрать минимальный ELF32: заголовок, program headers, данные
    сегментов и таблицу секций из одной .shstrtab.

    segments — список dict: vaddr, paddr (по умолчанию = vaddr), data,
    memsz (по умолчанию len(data)), type (по умолчанию PT_LOAD).
    """
    ehdr_size, phent, shent = 52, 32, 40
    phoff = ehdr_size
    offset = phoff + phent * len(segments)

    phdrs = b""
    blobs = b""
    for seg in segments:
        data = seg.get("data", b"")
        vaddr = seg["vaddr"]
        paddr = seg.get("paddr", vaddr)
        filesz = seg.get("filesz", len(data))  # больше len(data) — «обрезанный» файл
        memsz = seg.get("memsz", filesz)
        phdrs += struct.pack(endian + "8I", seg.get("type", PT_LOAD), offset + len(blobs),
                             vaddr, paddr, filesz, memsz, 0x7, 4)
        blobs += data

    shstrtab = b"\x00.shstrtab\x00"
    strtab_off = offset + len(blobs)
    shoff = strtab_off + len(shstrtab)
    shoff += (-shoff) % 4
    padding = b"\x00" * (shoff - strtab_off - len(shstrtab))

    shdrs = b"\x00" * shent
    shdrs += struct.pack(endian + "10I", 1, 3, 0, 0, strtab_off, len(shstrtab), 0, 0, 1, 0)

    encoding = 1 if endian == "<" else 2
    ident = magic + bytes([1, encoding, 1, 0]) + b"\x00" * 8
    ehdr = ident + struct.pack(endian + "HHIIIIIHHHHHH", 2, machine, 1, entry, phoff, shoff,
                               0x05000200, ehdr_size, phent, len(segments), shent, 2, 1)
    return ehdr + phdrs + blobs + shstrtab + padding + shdrs


@pytest.fixture
def make_elf():
    def _make(entry, segments, **kwargs):
        return io.BytesIO(build_elf(entry, segments, **kwargs))
    return _make


@pytest.fixture
def elf_file(tmp_path):
    """Записать ELF на диск, вернуть путь."""
    def _write(entry, segments, name="fw.elf", **kwargs):
        path = tmp_path / name
        path.write_bytes(build_elf(entry, segments, **kwargs))
        return path
    return _write


def pattern(size, seed=0):
    return bytes((seed + i) & 0xFF for i in range(size))


@pytest.fixture
def data_pattern():
    return pattern


@pytest.fixture
def uf2_block():
    """Эталонный UF2-блок, собранный вручную, без кода пакета."""
    def _block(addr, block_no, num_blocks, family_id, page=b"", page_size=256):
        header = struct.pack("<8I", 0x0A324655, 0x9E5D5157, 0x2000, addr, page_size,
                             block_no, num_blocks, family_id)
        payload = page.ljust(476, b"\x00")
        return header + payload + struct.pack("<I", 0x0AB16F30)
    return _block
