from pathlib import Path

import pytest

from api_param_resolver.errors import ConfigurationError
from api_param_resolver.settings import EnumHandling, GenerationSettings, PropertyNameHandling, load_settings

FIXTURES = Path(__file__).parent / "fixtures"


class TestGenerationSettings:
    def test_defaults(self):
        settings = GenerationSettings()
        assert settings.complex_query_binding is False
        assert settings.add_missing_path_parameters is False
        assert settings.default_enum_handling == EnumHandling.INTEGER
        assert settings.default_property_name_handling == PropertyNameHandling.DEFAULT


class TestLoadSettings:
    def test_load_yaml(self):
        settings = load_settings(FIXTURES / "settings.yaml")
        assert settings.complex_query_binding is True
        assert settings.add_missing_path_parameters is True
        assert settings.default_enum_handling == EnumHandling.STRING
        assert settings.default_property_name_handling == PropertyNameHandling.CAMEL_CASE

    def test_empty_file_gives_defaults(self, tmp_path):
        f = tmp_path / "empty.yaml"
        f.write_text("")
        assert load_settings(f) == GenerationSettings()

    def test_non_mapping_rejected(self, tmp_path):
        f = tmp_path / "list.yaml"
        f.write_text("- a\n- b\n")
        with pytest.raises(ConfigurationError):
            load_settings(f)

    def test_invalid_value_rejected(self, tmp_path):
        f = tmp_path / "bad.yaml"
        f.write_text("default_enum_handling: sometimes\n")
        with pytest.raises(ConfigurationError, match="Invalid settings"):
            load_settings(f)

    def test_invalid_yaml_rejected(self, tmp_path):
        f = tmp_path / "broken.yaml"
        f.write_text("a: [1, 2\n")
        with pytest.raises(ConfigurationError):
            load_settings(f)
