"""Tests for the fact source."""

from collections import Counter
import json
import pathlib
import random

import httpx
import pytest

from fact_annotator.config import FactSourceConfig
from fact_annotator.exceptions import FactSourceException
from fact_annotator.facts import FactSource
from fact_annotator.manifest import Fact

URL = "http://facts.example.com/facts"


def http_source(
    handler: httpx.MockTransport, config: FactSourceConfig | None = None
) -> FactSource:
    """Create a fact source fetching through the mock transport."""
    return FactSource(
        config or FactSourceConfig(url=URL),
        client=httpx.AsyncClient(transport=handler),
    )


async def test_initialize_http() -> None:
    """Test loading the corpus from an http endpoint."""
    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(200, json=[{"type": "cat", "text": "A"}])

    source = http_source(httpx.MockTransport(handler))
    await source.initialize()
    assert source.initialized
    assert source.facts == [Fact(text="A", category="cat")]
    assert len(requests) == 1
    assert str(requests[0].url) == URL
    assert requests[0].headers["Accept"] == "application/json"


async def test_initialize_http_all_object() -> None:
    """Test loading a corpus where the facts are nested under `all`."""

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            200, json={"all": [{"type": "cat", "text": "A"}, {"type": "cat", "text": "B"}]}
        )

    source = http_source(httpx.MockTransport(handler))
    await source.initialize()
    assert len(source) == 2


async def test_initialize_http_error_status() -> None:
    """Test a non-2xx response fails initialization."""

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(503, text="unavailable")

    source = http_source(httpx.MockTransport(handler))
    with pytest.raises(FactSourceException, match="status 503"):
        await source.initialize()
    assert not source.initialized


async def test_initialize_http_transport_error() -> None:
    """Test a network failure fails initialization."""

    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    source = http_source(httpx.MockTransport(handler))
    with pytest.raises(FactSourceException, match="connection refused"):
        await source.initialize()


async def test_initialize_http_malformed() -> None:
    """Test a malformed payload fails initialization."""

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="<html>not json</html>")

    source = http_source(httpx.MockTransport(handler))
    with pytest.raises(FactSourceException, match="invalid json"):
        await source.initialize()


async def test_initialize_http_wrong_shape() -> None:
    """Test a json payload of the wrong shape fails initialization."""

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"status": "ok"})

    source = http_source(httpx.MockTransport(handler))
    with pytest.raises(FactSourceException, match="Failed to decode"):
        await source.initialize()


async def test_initialize_file(corpus_file: pathlib.Path) -> None:
    """Test loading the corpus from a local file and file:// url."""
    source = FactSource(FactSourceConfig(url=str(corpus_file)))
    await source.initialize()
    assert len(source) == 3

    source = FactSource()
    await source.initialize(corpus_file.as_uri())
    assert len(source) == 3


async def test_initialize_missing_file(tmp_path: pathlib.Path) -> None:
    """Test a missing corpus file fails initialization."""
    source = FactSource(FactSourceConfig(url=str(tmp_path / "missing.json")))
    with pytest.raises(FactSourceException, match="Failed to read facts"):
        await source.initialize()


async def test_initialize_unsupported_scheme() -> None:
    """Test an unsupported location fails initialization."""
    source = FactSource(FactSourceConfig(url="ftp://example.com/facts"))
    with pytest.raises(FactSourceException, match="Unsupported"):
        await source.initialize()


async def test_category_filter(corpus_file: pathlib.Path) -> None:
    """Test only facts of the configured type are kept."""
    source = FactSource(FactSourceConfig(url=str(corpus_file), category="dog"))
    await source.initialize()
    assert source.facts == [Fact(text="Dogs have three eyelids.", category="dog")]


def test_next_before_initialize() -> None:
    """Test next fails instead of indexing into an unloaded corpus."""
    with pytest.raises(FactSourceException, match="not initialized"):
        FactSource().next()


async def test_next_empty_corpus(tmp_path: pathlib.Path) -> None:
    """Test next fails instead of indexing into an empty corpus."""
    path = tmp_path / "facts.json"
    path.write_text("[]")
    source = FactSource(FactSourceConfig(url=str(path)))
    await source.initialize()
    assert source.initialized
    with pytest.raises(FactSourceException, match="no facts"):
        source.next()


async def test_next_single_fact(tmp_path: pathlib.Path) -> None:
    """Test a corpus of one fact always returns that fact."""
    path = tmp_path / "facts.json"
    path.write_text(json.dumps([{"type": "cat", "text": "A"}]))
    source = FactSource(FactSourceConfig(url=str(path)))
    await source.initialize()
    for _ in range(200):
        assert source.next().text == "A"


async def test_next_uniform(tmp_path: pathlib.Path) -> None:
    """Test every fact is selected with roughly uniform frequency."""
    path = tmp_path / "facts.json"
    path.write_text(json.dumps([{"type": "cat", "text": str(i)} for i in range(5)]))
    source = FactSource(FactSourceConfig(url=str(path)), rng=random.Random(1234))
    await source.initialize()

    trials = 5000
    counts = Counter(source.next().text for _ in range(trials))
    assert set(counts) == {"0", "1", "2", "3", "4"}
    for count in counts.values():
        assert abs(count - trials / 5) < trials / 5 * 0.2
