# memory/address_range.py
from __future__ import annotations
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional

from ..errors import ContentsForUninitializedMemoryError, SegmentInvalidForDeviceError

log = logging.getLogger(__name__)


class RangeKind(Enum):
    CONTENTS = "contents"        # может содержать данные из файла
    NO_CONTENTS = "no_contents"  # только неинициализированная память (BSS)
    IGNORE = "ignore"            # сегменты сюда молча пропускаются


@dataclass(frozen=True)
class AddressRange:
    start: int
    end: int  # не включительно
    kind: RangeKind

    def contains(self, addr: int) -> bool:
        return self.start <= addr < self.end

    def covers(self, addr: int, size: int) -> bool:
        return self.start <= addr and self.end >= addr + size


def range_for(ranges: Iterable[AddressRange], addr: int) -> Optional[AddressRange]:
    for r in ranges:
        if r.contains(addr):
            return r
    return None


def is_address_initialized(ranges: Iterable[AddressRange], addr: int) -> bool:
    """True, если адрес попадает в диапазон с содержимым. «Не найдено» -> False."""
    r = range_for(ranges, addr)
    return r is not None and r.kind is RangeKind.CONTENTS


def classify(ranges: Iterable[AddressRange], addr: int, size: int,
             uninitialized: bool = False) -> AddressRange:
    """
    Найти первый диапазон, целиком покрывающий [addr, addr+size).
    uninitialized=False означает, что у куска есть байты в файле,
    и NO_CONTENTS для него запрещён.
    """
    for r in ranges:
        if not r.covers(addr, size):
            continue
        if r.kind is RangeKind.NO_CONTENTS and not uninitialized:
            raise ContentsForUninitializedMemoryError(addr)
        log.debug("%s segment 0x%08x->0x%08x (%s)",
                  "Uninitialized" if uninitialized else "Mapped",
                  addr, addr + size, r.kind.value)
        return r
    raise SegmentInvalidForDeviceError(addr, addr + size)
