from __future__ import annotations

import pytest
from pydantic import ValidationError

from depmatrix.adapters.api_gateway import GatewayRecordPayload
from depmatrix.adapters.cicd import PipelineEventPayload
from depmatrix.adapters.codebase import NpmManifestPayload
from depmatrix.adapters.schema import PayloadModel, blank_to_none, require_text


@pytest.mark.parametrize(
    ("value", "expected"), [("  x ", "x"), ("   ", None), (3, 3), (None, None)]
)
def test_blank_to_none(value: object, expected: object) -> None:
    assert blank_to_none(value) == expected


def test_require_text_rejects_blank() -> None:
    with pytest.raises(ValueError, match="blank"):
        require_text("  ")


@pytest.mark.parametrize("model", [GatewayRecordPayload, PipelineEventPayload, NpmManifestPayload])
def test_payloads_share_one_base(model: type[PayloadModel]) -> None:
    assert issubclass(model, PayloadModel)
    assert model.model_config["extra"] == "ignore"


def test_blank_pipeline_endpoints_are_rejected() -> None:
    with pytest.raises(ValidationError):
        PipelineEventPayload.model_validate({"source": " ", "target": "db"})


def test_npm_manifest_blank_name_is_unset() -> None:
    payload = NpmManifestPayload.model_validate({"name": " ", "dependencies": {"a": "1"}})

    assert payload.name is None
    assert payload.dependencies == {"a": "1"}
