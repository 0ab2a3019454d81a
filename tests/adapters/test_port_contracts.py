"""Adapters satisfy the structural ports the application layer depends on."""

from __future__ import annotations

from lib_dotenv_binder.adapters.env.default import DefaultEnvLoader
from lib_dotenv_binder.adapters.source.default import DefaultSourceReader
from lib_dotenv_binder.application.ports import EntryLookup, EnvLoader, SourceReader
from lib_dotenv_binder.domain.store import Dotenv


def test_source_reader_port() -> None:
    assert isinstance(DefaultSourceReader(), SourceReader)


def test_env_loader_port() -> None:
    assert isinstance(DefaultEnvLoader(environ={}), EnvLoader)


def test_entry_lookup_port() -> None:
    assert isinstance(Dotenv([]), EntryLookup)
    assert isinstance({}, EntryLookup)
