from __future__ import annotations

from pathlib import Path
from typing import Callable

import pytest

from lib_dotenv_binder.application.converter import ConversionRegistry


@pytest.fixture()
def write_env(tmp_path: Path) -> Callable[..., Path]:
    """Write a `.env` style document into ``tmp_path`` and return its path."""

    def _write(body: str, name: str = ".env") -> Path:
        path = tmp_path / name
        path.write_text(body, encoding="utf-8")
        return path

    return _write


@pytest.fixture()
def registry() -> ConversionRegistry:
    """Fresh registry so tests never leak converters into the process-wide one."""

    return ConversionRegistry.with_builtins()
