"""Tests for the command-line interface."""

from unittest.mock import patch

from mcstate.cli import main
from mcstate.io.persistence import save


class TestCLI:
    def test_inspect(self, tmp_path, mc, capsys):
        filename = save(tmp_path / "run.npz", mc)

        assert main(["inspect", str(filename)]) == 0

        out = capsys.readouterr().out
        assert "MC/" in out
        assert "VERSION = 1" in out
        assert "conf = array int8 (16,)" in out
        assert "RNG = dict" in out

    def test_inspect_group(self, tmp_path, mc, capsys):
        filename = save(tmp_path / "run.json", mc)

        assert main(["inspect", str(filename), "MC", "Model"]) == 0

        out = capsys.readouterr().out
        assert out.splitlines()[0].endswith(":MC/Model")
        assert "Lattice/" in out
        assert "conf" not in out

    def test_inspect_does_not_unpickle(self, tmp_path, mc, capsys):
        filename = save(tmp_path / "run.npz", mc)

        with patch("mcstate.io.leaves.PickledValue.load", side_effect=ImportError("no module")):
            assert main(["inspect", str(filename), "MC", "Model", "Lattice"]) == 0

        assert "data = pickle (" in capsys.readouterr().out

    def test_inspect_leaf(self, tmp_path, mc, capsys):
        filename = save(tmp_path / "run.json", mc)
        assert main(["inspect", str(filename), "VERSION"]) == 0
        assert capsys.readouterr().out.strip().endswith("VERSION = 1")

    def test_inspect_missing(self, tmp_path, capsys):
        assert main(["inspect", str(tmp_path / "missing.json")]) == 1
        assert "Error" in capsys.readouterr().err

    def test_version(self, capsys):
        from mcstate import __version__

        assert main(["version"]) == 0
        assert __version__ in capsys.readouterr().out

    def test_no_command(self, capsys):
        assert main([]) == 1
