"""Tests for the corpus ingestion CLI."""

import pytest

from fakes import KeywordEmbedder
from ragchat.scripts import setup_corpus


@pytest.fixture
def fake_embedder(monkeypatch):
    embedder = KeywordEmbedder()
    monkeypatch.setattr("ragchat.src.providers.gemini.build_embedder", lambda: embedder)
    return embedder


def test_summary_lists_skipped_entries(tmp_path, fake_embedder, capsys):
    (tmp_path / "bio.md").write_text("Hi there", encoding="utf-8")
    (tmp_path / "photo.png").write_bytes(b"\x89PNG")

    code = setup_corpus.main(["--source", str(tmp_path), "--no-seed"])
    out = capsys.readouterr().out

    assert code == 0
    assert "EXECUTION SUMMARY" in out
    assert "photo.png: unsupported file type" in out
    assert "Corpus size          : 1" in out


def test_query_prints_matches(tmp_path, fake_embedder, capsys):
    (tmp_path / "hobbies.md").write_text("I enjoy chess.", encoding="utf-8")

    code = setup_corpus.main(["--source", str(tmp_path), "--no-seed", "--query", "chess"])
    out = capsys.readouterr().out

    assert code == 0
    assert "[1] hobbies.md: I enjoy chess." in out


def test_seed_corpus_loaded_by_default(tmp_path, fake_embedder, capsys):
    code = setup_corpus.main(["--source", str(tmp_path)])
    out = capsys.readouterr().out

    assert code == 0
    assert "Corpus size          : 6" in out


def test_embedder_failure_exits_nonzero(tmp_path, monkeypatch):
    def broken():
        raise RuntimeError("no credentials")

    monkeypatch.setattr("ragchat.src.providers.gemini.build_embedder", broken)
    assert setup_corpus.main(["--source", str(tmp_path)]) == 1
