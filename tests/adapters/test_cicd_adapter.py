from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime

import pytest
from pydantic import ValidationError

from depmatrix.adapters.cicd import CiCdAdapter, PipelineEventPayload
from depmatrix.domain.model import SourceType

JENKINS = "[2024-01-15T10:30:00.123Z] Pipeline build-stage -> deploy-stage DEPLOY finished SUCCESS"
GITHUB = "2024-01-15T10:30:00.123Z [info] workflow: deploy depends_on: [build, test]"
GITLAB = "2024-01-15T10:30:00.123Z job started stage: release needs: ['package']"
JSON = '{"timestamp": "2024-01-15T10:30:00Z", "sourceStage": "build", "targetStage": "publish"}'


@pytest.mark.parametrize(
    ("line", "edge", "platform"),
    [
        (JENKINS, "build-stage -> deploy-stage", "jenkins"),
        (GITHUB, "build -> deploy", "github-actions"),
        (GITLAB, "package -> release", "gitlab-ci"),
        (JSON, "build -> publish", "json"),
    ],
)
def test_auto_detects_each_platform(
    line: str, edge: str, platform: str, fixed_clock: Callable[[], datetime]
) -> None:
    adapter = CiCdAdapter(clock=fixed_clock)

    event = adapter.parse_line(line)
    (claim,) = adapter.parse(line)

    assert event is not None
    assert event.platform == platform
    assert claim.processed_data == edge
    assert claim.source_type is SourceType.CI_CD
    assert claim.id.startswith("cicd_")


def test_jenkins_carries_action_and_status() -> None:
    event = CiCdAdapter().parse_line(JENKINS)

    assert event is not None
    assert (event.action, event.status) == ("DEPLOY", "SUCCESS")
    assert event.timestamp == datetime(2024, 1, 15, 10, 30, 0, 123000, tzinfo=UTC)


def test_needs_based_platforms_use_fixed_action() -> None:
    github = CiCdAdapter().parse_line(GITHUB)
    gitlab = CiCdAdapter().parse_line(GITLAB)

    assert github is not None
    assert gitlab is not None
    assert (github.action, github.status) == ("WORKFLOW", "RUNNING")
    assert (gitlab.action, gitlab.status) == ("STAGE", "PENDING")


def test_json_defaults_action_and_status() -> None:
    event = CiCdAdapter().parse_line(JSON)

    assert event is not None
    assert (event.action, event.status) == ("PIPELINE", "UNKNOWN")


def test_json_without_timestamp_uses_clock(fixed_clock: Callable[[], datetime]) -> None:
    (claim,) = CiCdAdapter(clock=fixed_clock).parse('{"source": "lint", "target": "test"}')

    assert claim.timestamp == fixed_clock()


def test_json_with_blank_stage_is_skipped() -> None:
    assert CiCdAdapter().parse('{"source": " ", "target": "test"}') == []


def test_payload_requires_both_stages() -> None:
    with pytest.raises(ValidationError):
        PipelineEventPayload.model_validate({"source": "build"})


def test_explicit_format_restricts_grammar() -> None:
    assert CiCdAdapter().parse(GITHUB, "jenkins") == []
    assert len(CiCdAdapter().parse(GITHUB, "github-actions")) == 1


def test_unknown_format_yields_no_claims() -> None:
    assert CiCdAdapter().parse(JENKINS, "circleci") == []


def test_mixed_batch_keeps_line_order() -> None:
    claims = CiCdAdapter().parse("\n".join([GITLAB, "noise", JENKINS]))

    assert [claim.processed_data for claim in claims] == [
        "package -> release",
        "build-stage -> deploy-stage",
    ]
