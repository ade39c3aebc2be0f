"""Tests for the external documentation fetcher."""

from __future__ import annotations

from typing import Any, Callable

import httpx
import pytest

from apimodel.docs import DocsFetcher
from apimodel.exceptions import ParseItemError
from apimodel.model import ApiModel
from apimodel.models import DocsCacheConfig, GeneratorConfig

DOCS_URL = "https://docs.example.com/pet.md"


class Recorder:
    """Mock transport handler that counts requests per URL."""

    def __init__(self, status_code: int = 200, text: str = "# Pet\n\nA pet in the store."):
        self.status_code = status_code
        self.text = text
        self.calls: list[str] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(str(request.url))
        return httpx.Response(self.status_code, text=self.text)


@pytest.fixture()
def recorder() -> Recorder:
    return Recorder()


@pytest.fixture()
def make_fetcher(tmp_path) -> Callable[..., DocsFetcher]:
    """Build fetchers over a mock transport, closing them after the test."""
    fetchers: list[DocsFetcher] = []

    def _make(handler: Callable[[httpx.Request], httpx.Response], **config: Any) -> DocsFetcher:
        client = httpx.Client(transport=httpx.MockTransport(handler))
        fetcher = DocsFetcher(tmp_path, DocsCacheConfig(**config), client=client)
        fetchers.append(fetcher)
        return fetcher

    yield _make
    for fetcher in fetchers:
        fetcher.close()


# ------------------------------------------------------------------ #
# Fetching and caching
# ------------------------------------------------------------------ #


class TestFetch:
    def test_returns_body_text(self, make_fetcher, recorder) -> None:
        fetcher = make_fetcher(recorder)
        assert fetcher.fetch(DOCS_URL, "Pet") == "# Pet\n\nA pet in the store."
        assert recorder.calls == [DOCS_URL]

    def test_second_fetch_hits_cache(self, make_fetcher, recorder) -> None:
        fetcher = make_fetcher(recorder)
        fetcher.fetch(DOCS_URL)
        assert fetcher.fetch(DOCS_URL) == recorder.text
        assert len(recorder.calls) == 1

    def test_cache_survives_new_fetcher(self, make_fetcher, recorder) -> None:
        make_fetcher(recorder).fetch(DOCS_URL)
        second = Recorder(text="changed")
        assert make_fetcher(second).fetch(DOCS_URL) == recorder.text
        assert second.calls == []

    def test_cache_lives_in_docs_subdirectory(self, make_fetcher, recorder, tmp_path) -> None:
        make_fetcher(recorder).fetch(DOCS_URL)
        assert (tmp_path / "docs").is_dir()

    def test_disabled_cache_always_fetches(self, make_fetcher, recorder, tmp_path) -> None:
        fetcher = make_fetcher(recorder, enabled=False)
        fetcher.fetch(DOCS_URL)
        fetcher.fetch(DOCS_URL)
        assert len(recorder.calls) == 2
        assert not (tmp_path / "docs").exists()

    def test_clear_forces_refetch(self, make_fetcher, recorder) -> None:
        fetcher = make_fetcher(recorder)
        fetcher.fetch(DOCS_URL)
        fetcher.clear()
        fetcher.fetch(DOCS_URL)
        assert len(recorder.calls) == 2

    def test_clear_without_cache_is_noop(self, make_fetcher, recorder) -> None:
        make_fetcher(recorder, enabled=False).clear()

    def test_key_is_sha256_of_url(self) -> None:
        key = DocsFetcher._make_key(DOCS_URL)
        assert len(key) == 64
        assert key != DocsFetcher._make_key(DOCS_URL + "?v=2")


class TestFetchErrors:
    def test_http_error_raises_parse_item_error(self, make_fetcher) -> None:
        fetcher = make_fetcher(Recorder(status_code=404, text="missing"))
        with pytest.raises(ParseItemError, match="Pet: HTTP 404") as exc_info:
            fetcher.fetch(DOCS_URL, "Pet")
        assert isinstance(exc_info.value.__cause__, httpx.HTTPStatusError)

    def test_error_is_not_cached(self, make_fetcher) -> None:
        failing = make_fetcher(Recorder(status_code=500))
        with pytest.raises(ParseItemError):
            failing.fetch(DOCS_URL)
        recorder = Recorder()
        assert make_fetcher(recorder).fetch(DOCS_URL) == recorder.text

    def test_connection_error_raises_parse_item_error(self, make_fetcher) -> None:
        def refuse(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(ParseItemError, match="failed to fetch documentation"):
            make_fetcher(refuse).fetch(DOCS_URL)


# ------------------------------------------------------------------ #
# Integration with model building
# ------------------------------------------------------------------ #


def documented_pet(make_doc: Callable[..., dict[str, Any]]) -> dict[str, Any]:
    return make_doc(
        {
            "Pet": {
                "type": "object",
                "description": "Inline description",
                "externalDocs": {"url": DOCS_URL},
                "properties": {"name": {"type": "string"}},
            }
        }
    )


class TestModelIntegration:
    def test_external_docs_replace_description(self, make_fetcher, recorder, make_doc) -> None:
        model = ApiModel.from_document(
            documented_pet(make_doc), GeneratorConfig(), make_fetcher(recorder)
        )
        pet = model.resolve(model.get_named_reference("#/components/schemas/Pet"))
        assert pet.docs == recorder.text

    def test_fetching_disabled_keeps_description(self, make_fetcher, recorder, make_doc) -> None:
        model = ApiModel.from_document(
            documented_pet(make_doc),
            GeneratorConfig(fetch_external_docs=False),
            make_fetcher(recorder),
        )
        pet = model.resolve(model.get_named_reference("#/components/schemas/Pet"))
        assert pet.docs == "Inline description"
        assert recorder.calls == []

    def test_operation_external_docs(self, make_fetcher, recorder, make_doc) -> None:
        document = make_doc(
            paths={
                "/pets": {
                    "get": {
                        "operationId": "listPets",
                        "summary": "List pets",
                        "externalDocs": {"url": DOCS_URL},
                        "responses": {"204": {"description": "Nothing"}},
                    }
                }
            }
        )
        model = ApiModel.from_document(document, GeneratorConfig(), make_fetcher(recorder))
        assert model.endpoints[0].operation_documentation == recorder.text

    def test_fetch_failure_aborts_conversion(self, make_fetcher, make_doc) -> None:
        with pytest.raises(ParseItemError, match="HTTP 404"):
            ApiModel.from_document(
                documented_pet(make_doc),
                GeneratorConfig(),
                make_fetcher(Recorder(status_code=404)),
            )
