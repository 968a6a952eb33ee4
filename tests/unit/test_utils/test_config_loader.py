"""
tests/unit/test_utils/test_config_loader.py

Unit tests for ConfigLoader: defaults, YAML overlay, environment
substitution and runtime overrides.
"""

import pytest

from veracity.utils.config_loader import ConfigLoader
from veracity.utils.exceptions import ConfigurationError

class TestConfigLoader:
    """Test configuration loading from a temporary directory"""

    def test_defaults_without_files(self, tmp_path):
        """Test every knn default is present when no file exists"""
        loader = ConfigLoader(tmp_path)

        assert loader.get('model_config', 'knn.n_neighbors') == 5
        assert loader.get('model_config', 'knn.metric') == "euclidean"
        assert loader.get('model_config', 'knn.missing', 'fallback') == 'fallback'
        assert loader.get_metadata('model_config') is None

    def test_yaml_overlays_defaults(self, tmp_path):
        """Test file values override defaults key by key"""
        (tmp_path / "model_config.yaml").write_text("knn:\n  n_neighbors: 9\n", encoding="utf-8")
        loader = ConfigLoader(tmp_path)

        assert loader.get('model_config', 'knn.n_neighbors') == 9
        assert loader.get('model_config', 'knn.weights') == "uniform"
        assert loader.get_metadata('model_config').file_path.name == "model_config.yaml"

    def test_environment_substitution(self, tmp_path, monkeypatch):
        """Test ${VAR} and ${VAR:default} values"""
        monkeypatch.setenv("VERACITY_TEST_METRIC", "manhattan")
        monkeypatch.delenv("VERACITY_TEST_WEIGHTS", raising=False)
        (tmp_path / "model_config.yaml").write_text(
            "knn:\n  metric: ${VERACITY_TEST_METRIC}\n  weights: ${VERACITY_TEST_WEIGHTS:distance}\n",
            encoding="utf-8"
        )
        loader = ConfigLoader(tmp_path)

        assert loader.get('model_config', 'knn.metric') == "manhattan"
        assert loader.get('model_config', 'knn.weights') == "distance"

    def test_set_and_reload(self, tmp_path):
        """Test runtime overrides last until reload"""
        loader = ConfigLoader(tmp_path)
        loader.set('model_config', 'knn.chunk_size', 16)
        assert loader.get('model_config', 'knn.chunk_size') == 16

        loader.reload_config()
        assert loader.get('model_config', 'knn.chunk_size') == 1024

    def test_get_config_returns_copy(self, tmp_path):
        loader = ConfigLoader(tmp_path)
        section = loader.get_config('model_config')
        section['knn']['n_neighbors'] = 99

        assert loader.get('model_config', 'knn.n_neighbors') == 5
        assert loader.get_config('unknown') == {}

    def test_invalid_yaml(self, tmp_path):
        (tmp_path / "model_config.yaml").write_text("knn: [unclosed\n", encoding="utf-8")
        with pytest.raises(ConfigurationError):
            ConfigLoader(tmp_path)

    def test_non_mapping_yaml(self, tmp_path):
        (tmp_path / "model_config.yaml").write_text("- just\n- a list\n", encoding="utf-8")
        with pytest.raises(ConfigurationError):
            ConfigLoader(tmp_path)

    def test_export(self, tmp_path):
        loader = ConfigLoader(tmp_path)

        assert '"n_neighbors": 5' in loader.export_config('model_config', format='json')
        assert "n_neighbors: 5" in loader.export_config('model_config')
        with pytest.raises(ConfigurationError):
            loader.export_config('model_config', format='toml')
