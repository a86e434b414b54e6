import pytest

from elf2flash.memory.address_range import AddressRange, RangeKind
from elf2flash.memory.boards import Board, BoardProfile, Family


def test_board_from_name_is_case_insensitive():
    assert Board.from_name("RP2040") is Board.RP2040
    assert Board.from_name("rp2350") is Board.RP2350
    assert Board.from_name("circuit-playground-bluefruit") is Board.CIRCUIT_PLAYGROUND_BLUEFRUIT


def test_board_from_name_unknown():
    with pytest.raises(ValueError):
        Board.from_name("esp32")


def test_builtin_profiles():
    rp2040 = Board.RP2040.profile
    assert rp2040.family_id == 0xE48BFF56
    assert rp2040.page_size == 256
    assert rp2040.flash_sector_erase_size == 4096
    assert rp2040.supports_ram_binaries
    assert Board.RP2350.profile.family_id == Family.RP2350_ARM_S
    assert Board.RP2350.profile.xip_sram_start == 0x13FFC000
    assert Board.CIRCUIT_PLAYGROUND_BLUEFRUIT.profile.family_id == 0xADA52840


def test_main_ram_start_is_page_aligned_for_all_boards():
    for board in Board:
        p = board.profile
        assert p.main_ram_start % p.page_size == 0


def test_family_from_name():
    assert Family.from_name("rp2350-riscv") is Family.RP2350_RISCV
    with pytest.raises(ValueError):
        Family.from_name("nope")


def test_profile_without_ram_ranges_is_flash_only():
    p = BoardProfile(
        name="flash_only",
        family_id=0x12345678,
        flash_ranges=(AddressRange(0x0, 0x10000, RangeKind.CONTENTS),),
    )
    assert not p.supports_ram_binaries


@pytest.mark.parametrize("page_size", [0, 300, 512])
def test_profile_rejects_bad_page_size(page_size):
    with pytest.raises(ValueError):
        BoardProfile(name="bad", family_id=0, flash_ranges=(), page_size=page_size)
