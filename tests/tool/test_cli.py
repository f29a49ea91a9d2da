"""Tests for the fact-annotator command line tool."""

import pathlib
from unittest.mock import patch

import pytest

from fact_annotator.manifest import Pod
from fact_annotator.store import InMemoryPodStore
from fact_annotator.tool.fact_annotator import _make_parser, main


@pytest.fixture
def cluster() -> InMemoryPodStore:
    """A pod store standing in for the cluster."""
    store = InMemoryPodStore()
    store.add_pod(Pod(name="web", namespace="default", phase="Running"))
    store.add_pod(Pod(name="db", namespace="default", phase="Running"))
    store.add_pod(Pod(name="job", namespace="batch", phase="Pending"))
    return store


def test_parser_run_flags() -> None:
    """Test flags of the run command."""
    args = _make_parser().parse_args(
        ["run", "--workers", "5", "--no-watch-reconnect", "--resync-interval", "2.5"]
    )
    assert args.command == "run"
    assert args.workers == 5
    assert args.watch_reconnect is False
    assert args.resync_interval == 2.5
    assert args.queue_size is None


def test_parser_requires_command() -> None:
    """Test a command is required."""
    with pytest.raises(SystemExit):
        _make_parser().parse_args([])


def test_sweep(
    cluster: InMemoryPodStore,
    corpus_file: pathlib.Path,
    capsys: pytest.CaptureFixture[str],
) -> None:
    """Test a single sweep annotates every running pod."""
    with patch("fact_annotator.tool.options.connect_store", return_value=cluster):
        main(["sweep", "--facts-url", str(corpus_file)])
    assert capsys.readouterr().out == "Queued 2 pods for annotation\n"

    annotated = {
        pod.name for pod in cluster._pods.values() if "cat-fact" in pod.annotations
    }
    assert annotated == {"web", "db"}


def test_sweep_annotation_key(
    cluster: InMemoryPodStore, corpus_file: pathlib.Path
) -> None:
    """Test the annotation key flag."""
    with patch("fact_annotator.tool.options.connect_store", return_value=cluster):
        main(
            [
                "sweep",
                "--facts-url",
                str(corpus_file),
                "--annotation-key",
                "example.com/fact",
                "--fact-category",
                "dog",
            ]
        )
    for pod in cluster._pods.values():
        if pod.running:
            assert pod.annotations == {"example.com/fact": "Dogs have three eyelids."}


def test_sweep_fact_source_error(
    cluster: InMemoryPodStore,
    tmp_path: pathlib.Path,
    capsys: pytest.CaptureFixture[str],
) -> None:
    """Test a missing corpus exits with an error."""
    with patch(
        "fact_annotator.tool.options.connect_store", return_value=cluster
    ), pytest.raises(SystemExit) as exc:
        main(["sweep", "--facts-url", str(tmp_path / "missing.json")])
    assert exc.value.code == 1
    assert "fact-annotator error" in capsys.readouterr().err


def test_get(cluster: InMemoryPodStore, capsys: pytest.CaptureFixture[str]) -> None:
    """Test printing the pods in the cluster."""
    with patch("fact_annotator.tool.options.connect_store", return_value=cluster):
        main(["get", "--running"])
    lines = capsys.readouterr().out.splitlines()
    assert lines[0].split() == ["NAMESPACE", "NAME", "PHASE", "ANNOTATION"]
    assert [line.split()[:3] for line in lines[1:]] == [
        ["default", "db", "Running"],
        ["default", "web", "Running"],
    ]


def test_get_empty(capsys: pytest.CaptureFixture[str]) -> None:
    """Test printing an empty cluster."""
    with patch(
        "fact_annotator.tool.options.connect_store", return_value=InMemoryPodStore()
    ):
        main(["get"])
    assert capsys.readouterr().out == "no pods found\n"
