"""Tests for Autentica CLI."""

import json
import sys

import pytest

from autentica.cli import analyze_command, analyzers_command, main, vector_command


class _Args:
    """Minimal args namespace for testing CLI functions."""

    def __init__(self, **kwargs):
        for k, v in kwargs.items():
            setattr(self, k, v)


def _analyze_args(file, **overrides):
    values = dict(file=file, json=True, taxonomy=None, correlation_id=None,
                  workers=1, verbose=False)
    values.update(overrides)
    return _Args(**values)


class TestAnalyzeCommand:
    def test_analyze_json(self, plain_jpeg, capsys):
        with pytest.raises(SystemExit) as exc:
            analyze_command(_analyze_args(plain_jpeg, correlation_id="cli-1"))

        assert exc.value.code == 0
        output = json.loads(capsys.readouterr().out)
        names = [r["analyzer_name"] for r in output["results"]]
        assert names == ["definition", "signatures"]
        assert all(r["correlation_id"] == "cli-1" for r in output["results"])
        assert all(r["score"] is not None for r in output["results"])

    def test_analyze_text_report(self, plain_jpeg, capsys):
        with pytest.raises(SystemExit) as exc:
            analyze_command(_analyze_args(plain_jpeg, json=False))

        assert exc.value.code == 0
        out = capsys.readouterr().out
        assert "Image Authenticity Report" in out
        assert "[definition] score:" in out
        assert "[signatures] score:" in out

    def test_analyze_missing_file(self, capsys):
        with pytest.raises(SystemExit) as exc:
            analyze_command(_analyze_args("/nonexistent/file.jpg"))

        assert exc.value.code == 1
        assert "not found" in capsys.readouterr().err

    def test_analyze_undecodable_exits_one(self, tmp_path, capsys):
        path = tmp_path / "broken.png"
        path.write_bytes(b"garbage")
        with pytest.raises(SystemExit) as exc:
            analyze_command(_analyze_args(str(path)))

        assert exc.value.code == 1
        output = json.loads(capsys.readouterr().out)
        assert output["results"][0]["score"] is None

    def test_analyze_custom_taxonomy(self, plain_jpeg, tmp_path, capsys):
        taxonomy = tmp_path / "tax.json"
        taxonomy.write_text(json.dumps({}))
        with pytest.raises(SystemExit):
            analyze_command(_analyze_args(plain_jpeg, taxonomy=str(taxonomy)))

        output = json.loads(capsys.readouterr().out)
        signature = output["results"][1]
        assert signature["metadata"]["taxonomy_loaded"] is True
        assert signature["details"]["signature_type"] == "unknown"


class TestVectorCommand:
    def test_vector_json(self, capsys):
        args = _Args(name="color", values=["0.5"] * 10, json=True, models_dir=None, verbose=False)
        with pytest.raises(SystemExit) as exc:
            vector_command(args)

        assert exc.value.code == 0
        output = json.loads(capsys.readouterr().out)
        assert output["analyzer_name"] == "color"
        assert output["metadata"]["model_loaded"] is False

    def test_vector_wrong_length(self, capsys):
        args = _Args(name="screen", values=["0.5"] * 3, json=False, models_dir=None, verbose=False)
        with pytest.raises(SystemExit) as exc:
            vector_command(args)

        assert exc.value.code == 1
        assert "score: n/a" in capsys.readouterr().out

    def test_vector_models_dir(self, tmp_path, capsys):
        from autentica.inference import FeedForwardNetwork

        FeedForwardNetwork.untrained(10, 3, seed=4).save(tmp_path / "texture.json")
        args = _Args(name="texture", values=["0.2"] * 10, json=True,
                     models_dir=str(tmp_path), verbose=False)
        with pytest.raises(SystemExit):
            vector_command(args)

        output = json.loads(capsys.readouterr().out)
        assert output["metadata"]["model_loaded"] is True


class TestAnalyzersCommand:
    def test_lists_catalogue(self, capsys):
        analyzers_command(_Args())
        out = capsys.readouterr().out
        for name in ("color", "artifacts", "definition", "exif", "screen", "texture"):
            assert f"{name} (" in out
        assert "chromatic_balance" in out


class TestMain:
    def test_no_command_prints_help(self, monkeypatch, capsys):
        monkeypatch.setattr(sys, "argv", ["autentica"])
        with pytest.raises(SystemExit) as exc:
            main()
        assert exc.value.code == 1
        assert "usage" in capsys.readouterr().out.lower()

    def test_main_dispatches_vector(self, monkeypatch, capsys):
        monkeypatch.setattr(sys, "argv", ["autentica", "vector", "exif"] + ["0.5"] * 10 + ["-j"])
        with pytest.raises(SystemExit) as exc:
            main()
        assert exc.value.code == 0
        assert json.loads(capsys.readouterr().out)["analyzer_name"] == "exif"
