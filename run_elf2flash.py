from __future__ import annotations
import elf2flash.main as _cli_mod


def main():
    _cli_mod.app()


if __name__ == "__main__":
    main()
