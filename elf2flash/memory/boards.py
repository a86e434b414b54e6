# memory/boards.py
"""
Таблицы памяти известных устройств.

Каждый вариант Board несёт свой BoardProfile: family id для UF2, размер
страницы и сектора стирания, таблицы диапазонов для RAM- и Flash-образов.
Список закрытый: новое устройство = новый член перечисления.
"""
from __future__ import annotations
from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Optional, Tuple

from .address_range import AddressRange, RangeKind

# размер полезной нагрузки одного UF2-блока
UF2_PAYLOAD_CAPACITY = 476


# Список: https://github.com/microsoft/uf2/blob/master/utils/uf2families.json
class Family(IntEnum):
    RP2040 = 0xE48BFF56
    RP2XXX_ABSOLUTE = 0xE48BFF57  # RP2xxx без разделов
    RP2XXX_DATA = 0xE48BFF58      # RP2xxx, раздел данных
    RP2350_ARM_S = 0xE48BFF59
    RP2350_RISCV = 0xE48BFF5A
    RP2350_ARM_NS = 0xE48BFF5B
    NRF52840 = 0xADA52840

    @classmethod
    def from_name(cls, name: str) -> "Family":
        key = name.strip().upper().replace("-", "_")
        try:
            return cls[key]
        except KeyError:
            raise ValueError(f"Unknown UF2 family: {name}") from None


@dataclass(frozen=True)
class BoardProfile:
    name: str
    family_id: int
    flash_ranges: Tuple[AddressRange, ...]
    ram_ranges: Optional[Tuple[AddressRange, ...]] = None
    main_ram_start: Optional[int] = None
    main_ram_end: Optional[int] = None
    xip_sram_start: Optional[int] = None
    xip_sram_end: Optional[int] = None
    page_size: int = 256
    flash_sector_erase_size: int = 4096
    description: str = ""

    def __post_init__(self):
        if self.page_size <= 0 or self.page_size & (self.page_size - 1):
            raise ValueError(f"page_size must be a power of two, got {self.page_size}")
        if self.page_size > UF2_PAYLOAD_CAPACITY:
            raise ValueError(f"page_size {self.page_size} does not fit into a UF2 block")
        if self.flash_sector_erase_size % self.page_size:
            raise ValueError("flash_sector_erase_size must be a multiple of page_size")

    @property
    def supports_ram_binaries(self) -> bool:
        return (
            self.ram_ranges is not None
            and self.main_ram_start is not None
            and self.main_ram_end is not None
            and self.xip_sram_start is not None
            and self.xip_sram_end is not None
        )


# ---- RP2040 ----
MAIN_RAM_START_RP2040 = 0x20000000
MAIN_RAM_END_RP2040 = 0x20042000
FLASH_START_RP2040 = 0x10000000
FLASH_END_RP2040 = 0x15000000
XIP_SRAM_START_RP2040 = 0x15000000
XIP_SRAM_END_RP2040 = 0x15004000
MAIN_RAM_BANKED_START_RP2040 = 0x21000000
MAIN_RAM_BANKED_END_RP2040 = 0x21040000
ROM_START_RP2040 = 0x00000000
ROM_END_RP2040 = 0x00004000

RP2040_ADDRESS_RANGES_FLASH = (
    AddressRange(FLASH_START_RP2040, FLASH_END_RP2040, RangeKind.CONTENTS),
    AddressRange(MAIN_RAM_START_RP2040, MAIN_RAM_END_RP2040, RangeKind.NO_CONTENTS),
    AddressRange(MAIN_RAM_BANKED_START_RP2040, MAIN_RAM_BANKED_END_RP2040, RangeKind.NO_CONTENTS),
)

RP2040_ADDRESS_RANGES_RAM = (
    AddressRange(MAIN_RAM_START_RP2040, MAIN_RAM_END_RP2040, RangeKind.CONTENTS),
    AddressRange(XIP_SRAM_START_RP2040, XIP_SRAM_END_RP2040, RangeKind.CONTENTS),
    AddressRange(ROM_START_RP2040, ROM_END_RP2040, RangeKind.IGNORE),  # bootrom пока игнорируем
)

# ---- RP2350 ----
# RP2350 умеет хранить образы в разделах по произвольным адресам,
# так что граница флеша взята с запасом, как и у RP2040.
MAIN_RAM_START_RP2350 = 0x20000000
MAIN_RAM_END_RP2350 = 0x20082000
FLASH_START_RP2350 = 0x10000000
FLASH_END_RP2350 = 0x15000000
XIP_SRAM_START_RP2350 = 0x13FFC000
XIP_SRAM_END_RP2350 = 0x14000000
ROM_START_RP2350 = 0x00000000
ROM_END_RP2350 = 0x00008000

RP2350_ADDRESS_RANGES_FLASH = (
    AddressRange(FLASH_START_RP2350, FLASH_END_RP2350, RangeKind.CONTENTS),
    AddressRange(MAIN_RAM_START_RP2350, MAIN_RAM_END_RP2350, RangeKind.NO_CONTENTS),
)

RP2350_ADDRESS_RANGES_RAM = (
    AddressRange(MAIN_RAM_START_RP2350, MAIN_RAM_END_RP2350, RangeKind.CONTENTS),
    AddressRange(XIP_SRAM_START_RP2350, XIP_SRAM_END_RP2350, RangeKind.CONTENTS),
    AddressRange(ROM_START_RP2350, ROM_END_RP2350, RangeKind.IGNORE),
)

# ---- Adafruit Circuit Playground Bluefruit (nRF52840) ----
# Адреса по документации Nordic и пин-конфигу Adafruit_nRF52_Bootloader.
MAIN_RAM_START_CPB = 0x00800000
MAIN_RAM_END_CPB = 0x10000000
FLASH_START_CPB = 0x00100000
FLASH_END_CPB = 0x00800000
XIP_SRAM_START_CPB = 0x12000000
XIP_SRAM_END_CPB = 0x19FFFFFF
MAIN_RAM_BANKED_START_CPB = 0x60000000
MAIN_RAM_BANKED_END_CPB = 0xA0000000
BOOTLOADER_FLASH_START_CPB = 0x00000000
BOOTLOADER_FLASH_END_CPB = 0x00100000

CPB_ADDRESS_RANGES_FLASH = (
    AddressRange(FLASH_START_CPB, FLASH_END_CPB, RangeKind.CONTENTS),
    AddressRange(MAIN_RAM_START_CPB, MAIN_RAM_END_CPB, RangeKind.NO_CONTENTS),
    AddressRange(MAIN_RAM_BANKED_START_CPB, MAIN_RAM_BANKED_END_CPB, RangeKind.NO_CONTENTS),
)

CPB_ADDRESS_RANGES_RAM = (
    AddressRange(MAIN_RAM_START_CPB, MAIN_RAM_END_CPB, RangeKind.CONTENTS),
    AddressRange(XIP_SRAM_START_CPB, XIP_SRAM_END_CPB, RangeKind.CONTENTS),
    AddressRange(BOOTLOADER_FLASH_START_CPB, BOOTLOADER_FLASH_END_CPB, RangeKind.IGNORE),
)


class Board(Enum):
    RP2040 = BoardProfile(
        name="rp2040",
        family_id=Family.RP2040,
        flash_ranges=RP2040_ADDRESS_RANGES_FLASH,
        ram_ranges=RP2040_ADDRESS_RANGES_RAM,
        main_ram_start=MAIN_RAM_START_RP2040,
        main_ram_end=MAIN_RAM_END_RP2040,
        xip_sram_start=XIP_SRAM_START_RP2040,
        xip_sram_end=XIP_SRAM_END_RP2040,
        description="Raspberry Pi RP2040",
    )
    RP2350 = BoardProfile(
        name="rp2350",
        # ARM secure: так загружается чип, если держать BOOTSEL при включении
        family_id=Family.RP2350_ARM_S,
        flash_ranges=RP2350_ADDRESS_RANGES_FLASH,
        ram_ranges=RP2350_ADDRESS_RANGES_RAM,
        main_ram_start=MAIN_RAM_START_RP2350,
        main_ram_end=MAIN_RAM_END_RP2350,
        xip_sram_start=XIP_SRAM_START_RP2350,
        xip_sram_end=XIP_SRAM_END_RP2350,
        description="Raspberry Pi RP2350",
    )
    CIRCUIT_PLAYGROUND_BLUEFRUIT = BoardProfile(
        name="circuit_playground_bluefruit",
        family_id=Family.NRF52840,
        flash_ranges=CPB_ADDRESS_RANGES_FLASH,
        ram_ranges=CPB_ADDRESS_RANGES_RAM,
        main_ram_start=MAIN_RAM_START_CPB,
        main_ram_end=MAIN_RAM_END_CPB,
        xip_sram_start=XIP_SRAM_START_CPB,
        xip_sram_end=XIP_SRAM_END_CPB,
        description="Adafruit Circuit Playground Bluefruit (nRF52840)",
    )

    @property
    def profile(self) -> BoardProfile:
        return self.value

    @classmethod
    def from_name(cls, name: str) -> "Board":
        key = name.strip().lower().replace("-", "_")
        for board in cls:
            if board.profile.name == key:
                return board
        raise ValueError(f"Unknown board: {name}")
