"""Tests for save configuration."""

import pytest

from mcstate.config import SaveOptions


class TestSaveOptions:
    def test_defaults(self):
        options = SaveOptions()
        assert options.overwrite is False
        assert options.rename is True
        assert options.compress is True
        assert options.backend_options == {}

    def test_from_yaml(self, tmp_path):
        path = tmp_path / "options.yaml"
        path.write_text(
            "save:\n"
            "  overwrite: true\n"
            "  compress: false\n"
            "  backend_options:\n"
            "    indent: 4\n"
        )

        options = SaveOptions.from_yaml(path)

        assert options.overwrite is True
        assert options.rename is True
        assert options.compress is False
        assert options.backend_options == {"indent": 4}

    def test_from_yaml_whole_document(self, tmp_path):
        path = tmp_path / "options.yaml"
        path.write_text("rename: false\n")
        assert SaveOptions.from_yaml(path, section=None).rename is False

    def test_empty_yaml(self, tmp_path):
        path = tmp_path / "options.yaml"
        path.write_text("")
        assert SaveOptions.from_yaml(path) == SaveOptions()

    def test_unknown_key(self):
        with pytest.raises(ValueError, match="renmae"):
            SaveOptions.from_dict({"renmae": False})

    def test_to_dict_and_from_dict(self):
        options = SaveOptions(overwrite=True, backend_options={"indent": 2})
        assert SaveOptions.from_dict(options.to_dict()) == options
