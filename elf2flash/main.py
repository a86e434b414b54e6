from __future__ import annotations
import json
import logging
from pathlib import Path
from datetime import datetime, timezone

import typer
from rich import print
from rich.logging import RichHandler

from .config import LOG_FILE, DEFAULT_BOARD
from .convert import convert_file
from .errors import Elf2FlashError
from .memory.boards import Board, Family
from .uf2.block import read_blocks, summarize

app = typer.Typer(add_completion=False, help="ELF -> UF2 для загрузчиков RP2040/RP2350 и совместимых плат.")


def _log_event(kind: str, payload: dict):
    LOG_FILE.parent.mkdir(parents=True, exist_ok=True)
    record = {
        "ts": datetime.now(timezone.utc).isoformat(),
        "kind": kind,
        "payload": payload,
    }
    with open(LOG_FILE, "a", encoding="utf-8") as f:
        f.write(json.dumps(record, ensure_ascii=False) + "\n")


def _setup_logging(verbose: bool):
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(show_path=False)],
        force=True,
    )


@app.command()
def boards():
    """Показать поддерживаемые платы."""
    for b in Board:
        p = b.profile
        ram = "RAM+FLASH" if p.supports_ram_binaries else "FLASH"
        print(f"[cyan]{p.name}[/] - {p.description} "
              f"(family 0x{p.family_id:08x}, page {p.page_size}, sector {p.flash_sector_erase_size}, {ram})")


@app.command()
def convert(
    input_file: Path = typer.Argument(..., help="ELF-файл прошивки"),
    output_file: Path = typer.Argument(None, help="Куда записать UF2 (по умолчанию рядом с ELF)"),
    board: str = typer.Option(DEFAULT_BOARD, help="Плата: rp2040, rp2350, circuit_playground_bluefruit"),
    family: str = typer.Option(None, help="Переопределить UF2 family, напр. RP2350_RISCV"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Подробный вывод"),
    progress: bool = typer.Option(True, help="Показывать прогресс записи"),
):
    """
    Сконвертировать ELF в UF2.
    При ошибке недописанный UF2 удаляется.
    """
    _setup_logging(verbose)

    if not input_file.exists():
        print(f"[red]Файл не найден:[/] {input_file}")
        raise typer.Exit(code=2)

    try:
        profile = Board.from_name(board).profile
        family_id = int(Family.from_name(family)) if family else None
    except ValueError as e:
        print(f"[red]{e}[/]")
        raise typer.Exit(code=2)

    print(f"[green]Конвертация {input_file} для {profile.name}...[/]")
    uf2_family = profile.family_id if family_id is None else family_id
    print(f"UF2 family: 0x{uf2_family:08x}")
    try:
        result = convert_file(input_file, output_file, profile, family_id, progress=progress)
    except (Elf2FlashError, OSError) as e:
        _log_event("convert_error", {
            "input": str(input_file),
            "board": profile.name,
            "error": type(e).__name__,
            "message": str(e),
        })
        print(f"[red]Ошибка конвертации:[/] {e}")
        raise typer.Exit(code=1)

    _log_event("convert", result)
    kind = "RAM" if result["ram_style"] else "FLASH"
    print(f"[green]Готово:[/] {result['blocks']} блоков ({kind}) -> {result['output']}")
    print(f"[dim]Логи записаны в: {LOG_FILE}[/]")


@app.command()
def info(uf2_file: Path = typer.Argument(..., help="UF2-файл для разбора")):
    """Показать адреса, семейства и нумерацию блоков UF2."""
    if not uf2_file.exists():
        print(f"[red]Файл не найден:[/] {uf2_file}")
        raise typer.Exit(code=2)

    try:
        with open(uf2_file, "rb") as f:
            blocks = list(read_blocks(f))
    except Elf2FlashError as e:
        print(f"[red]Ошибка разбора:[/] {e}")
        raise typer.Exit(code=1)

    summary = summarize(blocks)
    print(f"[bold]Блоков:[/] {summary['blocks']}, данных: {summary['payload_bytes']} байт")
    for fam in summary["families"]:
        try:
            name = Family(fam).name
        except ValueError:
            name = "unknown"
        print(f"[cyan]family[/] 0x{fam:08x} ({name})")
    for start, end in summary["ranges"]:
        print(f"  0x{start:08x} - 0x{end:08x} ({(end - start) / 1024:.2f} KB)")
    if not summary["numbering_ok"]:
        print("[bold yellow]Нумерация блоков нарушена (block_no / num_blocks).[/]")
        raise typer.Exit(code=1)


if __name__ == "__main__":
    app()
