"""Module entrypoint for ``python -m errorprone_compile``."""

from __future__ import annotations

from errorprone_compile.main import cli_entrypoint

if __name__ == "__main__":
    raise SystemExit(cli_entrypoint())
