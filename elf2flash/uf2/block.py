# uf2/block.py
"""
Блок UF2: 32 байта заголовка + 476 байт данных + 4 байта футера = 512.
Все целые — little-endian. Формат: https://github.com/microsoft/uf2
"""
from __future__ import annotations
import logging
import struct
from dataclasses import dataclass
from typing import BinaryIO, Callable, Iterator, List, Mapping

from ..errors import Uf2FormatError

log = logging.getLogger(__name__)

UF2_MAGIC_START0 = 0x0A324655
UF2_MAGIC_START1 = 0x9E5D5157
UF2_MAGIC_END = 0x0AB16F30

UF2_FLAG_FAMILY_ID_PRESENT = 0x00002000

UF2_BLOCK_SIZE = 512
UF2_PAYLOAD_SIZE = 476

_HEADER = struct.Struct("<8I")
_FOOTER = struct.Struct("<I")

U32_MAX = 0xFFFFFFFF


@dataclass(frozen=True)
class Uf2Block:
    target_addr: int
    payload_size: int
    block_no: int
    num_blocks: int
    family_id: int  # в спецификации UF2 это же поле — file_size
    payload: bytes
    flags: int = UF2_FLAG_FAMILY_ID_PRESENT

    def pack(self) -> bytes:
        if len(self.payload) > UF2_PAYLOAD_SIZE:
            raise ValueError(f"payload is {len(self.payload)} bytes, max {UF2_PAYLOAD_SIZE}")
        if not 0 <= self.target_addr <= U32_MAX:
            raise OverflowError(f"target address 0x{self.target_addr:x} does not fit into u32")
        header = _HEADER.pack(
            UF2_MAGIC_START0,
            UF2_MAGIC_START1,
            self.flags,
            self.target_addr,
            self.payload_size,
            self.block_no,
            self.num_blocks,
            self.family_id,
        )
        payload = self.payload + b"\x00" * (UF2_PAYLOAD_SIZE - len(self.payload))
        return header + payload + _FOOTER.pack(UF2_MAGIC_END)

    @classmethod
    def unpack(cls, raw: bytes) -> "Uf2Block":
        if len(raw) != UF2_BLOCK_SIZE:
            raise Uf2FormatError(f"UF2 block must be {UF2_BLOCK_SIZE} bytes, got {len(raw)}")
        (magic0, magic1, flags, target_addr, payload_size,
         block_no, num_blocks, family_id) = _HEADER.unpack_from(raw, 0)
        (magic_end,) = _FOOTER.unpack_from(raw, UF2_BLOCK_SIZE - _FOOTER.size)
        if magic0 != UF2_MAGIC_START0 or magic1 != UF2_MAGIC_START1 or magic_end != UF2_MAGIC_END:
            raise Uf2FormatError(f"Bad UF2 magic in block {block_no}")
        if payload_size > UF2_PAYLOAD_SIZE:
            raise Uf2FormatError(f"Payload size {payload_size} is too large in block {block_no}")
        payload = raw[_HEADER.size:_HEADER.size + payload_size]
        return cls(target_addr, payload_size, block_no, num_blocks, family_id, payload, flags)


def write_blocks(pages: Mapping[int, object], sink: BinaryIO, family_id: int,
                 page_size: int, read_page: Callable[[int, object], bytes]) -> int:
    """
    Записать по блоку на страницу, по возрастанию адреса.
    read_page(addr, fragments) отдаёт page_size байт содержимого страницы.
    Возвращает число блоков.
    """
    if page_size > UF2_PAYLOAD_SIZE:
        raise ValueError(f"page_size {page_size} does not fit into a UF2 block")
    num_blocks = len(pages)
    for block_no, addr in enumerate(sorted(pages)):
        log.debug("Page %d / %d 0x%08x", block_no, num_blocks, addr)
        data = read_page(addr, pages[addr])
        block = Uf2Block(
            target_addr=addr,
            payload_size=page_size,
            block_no=block_no,
            num_blocks=num_blocks,
            family_id=family_id,
            payload=bytes(data[:page_size]),
        )
        sink.write(block.pack())
    return num_blocks


def read_blocks(stream: BinaryIO) -> Iterator[Uf2Block]:
    while True:
        raw = stream.read(UF2_BLOCK_SIZE)
        if not raw:
            return
        yield Uf2Block.unpack(raw)


def summarize(blocks: List[Uf2Block]) -> dict:
    """Сводка по UF2: диапазоны адресов, семейства, целостность нумерации."""
    ranges = []
    for b in sorted(blocks, key=lambda b: b.target_addr):
        end = b.target_addr + b.payload_size
        if ranges and ranges[-1][1] == b.target_addr:
            ranges[-1][1] = end
        else:
            ranges.append([b.target_addr, end])
    numbering_ok = (
        [b.block_no for b in blocks] == list(range(len(blocks)))
        and all(b.num_blocks == len(blocks) for b in blocks)
    )
    return {
        "blocks": len(blocks),
        "families": sorted({b.family_id for b in blocks}),
        "ranges": [(start, end) for start, end in ranges],
        "payload_bytes": sum(b.payload_size for b in blocks),
        "numbering_ok": numbering_ok,
    }
