from __future__ import annotations

from dataclasses import dataclass, field
from datetime import timedelta

import pytest

from lib_dotenv_binder.adapters.schema.declarative import env_field, env_ignore, env_prefix, schema_from_dataclass
from lib_dotenv_binder.domain.errors import InvalidSchema


@env_prefix("DB_")
@dataclass
class DatabaseSettings:
    host: str = env_field("HOST", required=True)
    port: int = env_field("PORT", default=3306)
    timeout: timedelta = env_field("TIMEOUT", default="PT5S")
    tags: list[str] = env_field("TAGS", initial_factory=list)
    debug: bool = env_ignore(False)
    label: str = field(default="unbound")


def test_fields_in_declaration_order() -> None:
    schema = schema_from_dataclass(DatabaseSettings)
    assert [m.attribute for m in schema] == ["host", "port", "timeout", "tags", "debug"]
    assert [m.attribute for m in schema.bound_fields()] == ["host", "port", "timeout", "tags"]


def test_metadata_carries_prefix_type_and_default_text() -> None:
    by_name = {m.attribute: m for m in schema_from_dataclass(DatabaseSettings())}
    assert by_name["host"].effective_key == "DB_HOST"
    assert by_name["host"].required is True
    assert by_name["port"].default == "3306"
    assert by_name["port"].type is int
    assert by_name["tags"].type == list[str]
    assert by_name["debug"].ignored is True


def test_initial_values_apply_before_binding() -> None:
    settings = DatabaseSettings()
    assert settings.tags == []
    assert settings.debug is False
    assert settings.host is None


def test_subclass_inherits_prefix() -> None:
    @dataclass
    class ReplicaSettings(DatabaseSettings):
        lag: int = env_field("LAG", default=0)

    keys = [m.effective_key for m in schema_from_dataclass(ReplicaSettings).bound_fields()]
    assert keys == ["DB_HOST", "DB_PORT", "DB_TIMEOUT", "DB_TAGS", "DB_LAG"]


def test_class_without_prefix() -> None:
    @dataclass
    class Plain:
        name: str = env_field("APP_NAME")

    assert schema_from_dataclass(Plain).prefix == ""


def test_rejects_non_dataclass() -> None:
    class NotADataclass:
        pass

    with pytest.raises(InvalidSchema):
        schema_from_dataclass(NotADataclass)


def test_none_default_is_rejected() -> None:
    with pytest.raises(InvalidSchema):
        env_field("CERT", default=None)
