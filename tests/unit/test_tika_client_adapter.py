from pathlib import Path

import httpx
import pytest

from docshield.extraction.models import ExtractionMethod
from docshield.extraction.tika_client_adapter import TikaClientAdapter
from docshield.processor.exceptions import ServiceUnavailableError


def _make_adapter(handler) -> TikaClientAdapter:
    client = httpx.Client(transport=httpx.MockTransport(handler), base_url="http://tika")
    return TikaClientAdapter(
        base_url="http://tika",
        timeout_seconds=60,
        metadata_timeout_seconds=30,
        health_timeout_seconds=5,
        client=client,
    )


def _tika_server(requests: list[httpx.Request] | None = None, meta_status: int = 200):
    def handler(request: httpx.Request) -> httpx.Response:
        if requests is not None:
            requests.append(request)
        if request.url.path == "/version":
            return httpx.Response(200, text="Apache Tika 2.9.1\n")
        if request.url.path == "/tika/form":
            return httpx.Response(200, text="Extracted document text")
        if request.url.path == "/meta/form":
            if meta_status != 200:
                return httpx.Response(meta_status)
            return httpx.Response(200, json={"Content-Type": "application/pdf", "xmpTPg:NPages": "2"})
        return httpx.Response(404)

    return handler


@pytest.fixture()
def pdf_file(tmp_path: Path) -> Path:
    path = tmp_path / "report.pdf"
    path.write_bytes(b"%PDF-1.4 fake")
    return path


class TestTikaClientAdapter:
    def test_extract(self, pdf_file: Path) -> None:
        requests: list[httpx.Request] = []
        result = _make_adapter(_tika_server(requests)).extract(pdf_file)

        assert result.text == "Extracted document text"
        assert result.confidence == 0.9
        assert result.extraction_method is ExtractionMethod.TIKA
        assert result.metadata["tika_version"] == "Apache Tika 2.9.1"
        assert result.metadata["original_file_name"] == "report.pdf"
        assert result.metadata["detected_mime_type"] == "application/pdf"
        assert result.metadata["document_metadata"]["xmpTPg:NPages"] == "2"

        upload = next(r for r in requests if r.url.path == "/tika/form")
        assert upload.method == "POST"
        assert upload.headers["accept"] == "text/plain"
        body = upload.read()
        assert b'name="upload"' in body
        assert b"%PDF-1.4 fake" in body

    def test_metadata_failure_is_not_fatal(self, pdf_file: Path) -> None:
        result = _make_adapter(_tika_server(meta_status=500)).extract(pdf_file)
        assert result.text == "Extracted document text"
        assert "document_metadata" not in result.metadata

    def test_http_error(self, pdf_file: Path) -> None:
        adapter = _make_adapter(lambda request: httpx.Response(422))
        with pytest.raises(ServiceUnavailableError, match="HTTP 422"):
            adapter.extract(pdf_file)

    def test_timeout(self, pdf_file: Path) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("slow", request=request)

        with pytest.raises(ServiceUnavailableError, match="timed out"):
            _make_adapter(handler).extract(pdf_file)

    def test_unreachable(self, pdf_file: Path) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(ServiceUnavailableError, match="request failed"):
            _make_adapter(handler).extract(pdf_file)

    def test_unknown_version(self, pdf_file: Path) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path == "/version":
                return httpx.Response(503)
            return _tika_server()(request)

        result = _make_adapter(handler).extract(pdf_file)
        assert result.metadata["tika_version"] == "unknown"


class TestTikaHealthCheck:
    def test_healthy(self) -> None:
        assert _make_adapter(_tika_server()).health_check() is True

    def test_bad_status(self) -> None:
        assert _make_adapter(lambda request: httpx.Response(500)).health_check() is False

    def test_unreachable(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        assert _make_adapter(handler).health_check() is False
