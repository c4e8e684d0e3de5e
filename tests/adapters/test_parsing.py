from __future__ import annotations

import json
import logging
from collections.abc import Callable
from datetime import UTC, datetime

import pytest

from depmatrix.adapters import (
    ADAPTERS,
    CodebaseAdapter,
    NetworkAdapter,
    RouterLogAdapter,
    build_adapter,
    resolve_source,
)
from depmatrix.adapters.parsing import parse_timestamp
from depmatrix.domain.model import OBSERVED_SOURCE_TYPES, SourceType
from depmatrix.domain.ports import ClaimSource

AT = datetime(2024, 1, 15, 10, 30, tzinfo=UTC)


@pytest.mark.parametrize(
    "value",
    [
        "2024-01-15T10:30:00Z",
        "2024-01-15T12:30:00+02:00",
        "2024-01-15 10:30:00",
        1705314600000,
    ],
)
def test_parse_timestamp_formats(value: str | float, fixed_clock: Callable[[], datetime]) -> None:
    assert parse_timestamp(value, clock=fixed_clock) == AT


def test_parse_timestamp_uses_extra_formats(fixed_clock: Callable[[], datetime]) -> None:
    parsed = parse_timestamp(
        "15/Jan/2024:10:30:00 +0000", clock=fixed_clock, formats=("%d/%b/%Y:%H:%M:%S %z",)
    )

    assert parsed == AT


@pytest.mark.parametrize("value", ["not a time", "", None])
def test_parse_timestamp_falls_back_to_clock(
    value: str | None, fixed_clock: Callable[[], datetime]
) -> None:
    assert parse_timestamp(value, clock=fixed_clock) == fixed_clock()


def test_registry_covers_every_observed_source() -> None:
    assert set(ADAPTERS) == set(OBSERVED_SOURCE_TYPES)
    for source_type, adapter_cls in ADAPTERS.items():
        assert adapter_cls.source_type is source_type


@pytest.mark.parametrize(
    ("name", "expected"),
    [
        ("router-log", SourceType.ROUTER_LOG),
        ("ROUTER_LOG", SourceType.ROUTER_LOG),
        ("api-gateway", SourceType.API_GATEWAY),
        (SourceType.NETWORK, SourceType.NETWORK),
    ],
)
def test_resolve_source_accepts_cli_and_enum_names(name: str, expected: SourceType) -> None:
    assert resolve_source(name) is expected


def test_resolve_source_rejects_unknown_names() -> None:
    with pytest.raises(ValueError, match="Unknown claim source"):
        resolve_source("carrier-pigeon")


def test_build_adapter_rejects_synthetic_source() -> None:
    with pytest.raises(ValueError, match="No adapter"):
        build_adapter(SourceType.CONFLICT_RESOLVED)


def test_build_adapter_returns_claim_sources(fixed_clock: Callable[[], datetime]) -> None:
    adapter = build_adapter("codebase", clock=fixed_clock)

    assert isinstance(adapter, CodebaseAdapter)
    assert isinstance(adapter, ClaimSource)
    assert isinstance(build_adapter("router-log"), RouterLogAdapter)


def test_build_adapter_passes_manifest_owner() -> None:
    adapter = build_adapter("codebase", source_application="web-portal")
    raw = json.dumps({"dependencies": {"@enterprise/orders-client": "^1.2.0"}})

    (claim,) = adapter.parse(raw, "npm")

    assert claim.processed_data == "web-portal -> orders"


def test_line_adapter_formats_follow_parser_order() -> None:
    assert NetworkAdapter().formats == ("vpc-flow", "iptables", "connection")
    assert RouterLogAdapter().formats == ("default",)


def test_unsupported_format_warning_lists_formats(caplog: pytest.LogCaptureFixture) -> None:
    adapter = RouterLogAdapter()

    with caplog.at_level(logging.WARNING, logger="depmatrix.adapters.parsing"):
        assert adapter.parse("anything", "xml") == []

    assert "expected one of default" in caplog.text
