import json

import httpx
import pytest

from docshield.anonymization.models import AnalyzerResult, MaskOperator, RedactOperator
from docshield.anonymization.presidio_client_adapter import PresidioAnonymizerAdapter
from docshield.processor.exceptions import ServiceUnavailableError


def _make_adapter(handler) -> PresidioAnonymizerAdapter:
    client = httpx.Client(
        transport=httpx.MockTransport(handler),
        base_url="http://presidio",
    )
    return PresidioAnonymizerAdapter(
        base_url="http://presidio", timeout_seconds=30, client=client
    )


def _anonymize(adapter: PresidioAnonymizerAdapter):
    return adapter.anonymize(
        "Email: test@example.com",
        [AnalyzerResult("EMAIL_ADDRESS", 7, 23, 0.95)],
        {"EMAIL_ADDRESS": MaskOperator(chars_to_mask=6)},
    )


class TestPresidioAnonymizerAdapter:
    def test_sends_payload_and_parses_response(self) -> None:
        captured: dict = {}

        def handler(request: httpx.Request) -> httpx.Response:
            captured["path"] = request.url.path
            captured["body"] = json.loads(request.content)
            return httpx.Response(
                200,
                json={
                    "text": "Email: test@examp******",
                    "items": [
                        {
                            "entity_type": "EMAIL_ADDRESS",
                            "start": 7,
                            "end": 23,
                            "operator": "mask",
                            "text": "test@examp******",
                        }
                    ],
                },
            )

        result = _anonymize(_make_adapter(handler))

        assert captured["path"] == "/anonymize"
        assert captured["body"]["conflict_resolution"] == "merge_similar_or_contained"
        assert captured["body"]["analyzer_results"] == [
            {"entity_type": "EMAIL_ADDRESS", "start": 7, "end": 23, "score": 0.95}
        ]
        assert captured["body"]["anonymizers"]["EMAIL_ADDRESS"]["chars_to_mask"] == 6
        assert result.text == "Email: test@examp******"
        assert result.items[0].operator == "mask"
        assert result.entity_types == ["EMAIL_ADDRESS"]

    def test_http_error_is_service_unavailable(self) -> None:
        adapter = _make_adapter(lambda request: httpx.Response(500, text="boom"))
        with pytest.raises(ServiceUnavailableError, match="HTTP 500"):
            _anonymize(adapter)

    def test_connect_error_is_service_unavailable(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(ServiceUnavailableError, match="network error"):
            _anonymize(_make_adapter(handler))

    def test_timeout_is_service_unavailable(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("too slow", request=request)

        with pytest.raises(ServiceUnavailableError):
            _anonymize(_make_adapter(handler))

    def test_response_without_text(self) -> None:
        adapter = _make_adapter(lambda request: httpx.Response(200, json={"items": []}))
        with pytest.raises(ServiceUnavailableError, match="no 'text' field"):
            _anonymize(adapter)

    def test_non_json_response(self) -> None:
        adapter = _make_adapter(lambda request: httpx.Response(200, text="<html>"))
        with pytest.raises(ServiceUnavailableError, match="request failed"):
            _anonymize(adapter)

    def test_redact_payload(self) -> None:
        captured: dict = {}

        def handler(request: httpx.Request) -> httpx.Response:
            captured["body"] = json.loads(request.content)
            return httpx.Response(200, json={"text": "Email: ", "items": []})

        _make_adapter(handler).anonymize(
            "Email: x", [AnalyzerResult("EMAIL_ADDRESS", 7, 8, 0.9)], {"EMAIL_ADDRESS": RedactOperator()}
        )
        assert captured["body"]["anonymizers"] == {"EMAIL_ADDRESS": {"type": "redact"}}
