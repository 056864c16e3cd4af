"""Tests for WordWeb configuration loading."""

import math

import pytest

from wordweb.config.settings import (
    CollisionConfig,
    LayoutConfig,
    WordSourceConfig,
    WordWebConfig,
)
from wordweb.core.exceptions import ConfigError


class TestDefaults:
    def test_layout_defaults(self):
        layout = LayoutConfig()

        assert layout.map_size == 4000
        assert layout.reference_angle == pytest.approx(-math.pi / 2)
        assert layout.child_arc == pytest.approx(4 * math.pi / 3)
        assert (layout.radius_base, layout.radius_depth_offset, layout.radius_floor) == (
            350,
            1.5,
            120,
        )

    def test_collision_defaults(self):
        collision = CollisionConfig()

        assert collision.iterations == 50
        assert collision.padding == 10
        assert collision.push_factor == 0.5

    def test_word_source_defaults(self):
        source = WordSourceConfig()

        assert source.provider is None
        assert (source.min_words, source.max_words) == (5, 10)


class TestLoad:
    def test_missing_file_gives_defaults(self, tmp_path):
        config = WordWebConfig.load(tmp_path / "wordweb.yaml")
        assert config == WordWebConfig()

    def test_partial_file_overrides(self, tmp_path):
        path = tmp_path / "wordweb.yaml"
        path.write_text(
            "layout:\n  map_size: 2000\ncollision:\n  iterations: 10\n",
            encoding="utf-8",
        )

        config = WordWebConfig.load(path)

        assert config.layout.map_size == 2000
        assert config.collision.iterations == 10
        assert config.collision.padding == 10

    def test_empty_file_gives_defaults(self, tmp_path):
        path = tmp_path / "wordweb.yaml"
        path.write_text("", encoding="utf-8")

        assert WordWebConfig.load(path) == WordWebConfig()

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "wordweb.yaml"
        path.write_text("layout: [unclosed\n", encoding="utf-8")

        with pytest.raises(ConfigError, match="Invalid YAML"):
            WordWebConfig.load(path)

    def test_non_mapping_root(self, tmp_path):
        path = tmp_path / "wordweb.yaml"
        path.write_text("- one\n- two\n", encoding="utf-8")

        with pytest.raises(ConfigError, match="mapping"):
            WordWebConfig.load(path)

    def test_save_then_load(self, tmp_path):
        path = tmp_path / "nested" / "wordweb.yaml"
        config = WordWebConfig.from_dict(
            {"word_source": {"provider": "openrouter", "words_file": "words.yaml"}}
        )

        config.save(path)

        assert WordWebConfig.load(path) == config


class TestValidation:
    def test_unknown_key(self):
        with pytest.raises(ConfigError, match="Unknown configuration key"):
            WordWebConfig.from_dict({"collision": {"iteratons": 5}})

    @pytest.mark.parametrize(
        "data",
        [
            {"layout": {"map_size": 0}},
            {"layout": {"child_arc": 7.0}},
            {"layout": {"radius_floor": -1}},
            {"collision": {"iterations": 0}},
            {"collision": {"padding": -5}},
            {"collision": {"push_factor": 1.5}},
            {"collision": {"node_size_min": 100}},
            {"word_source": {"provider": "anthropic"}},
            {"word_source": {"min_words": 8, "max_words": 4}},
            {"word_source": {"timeout": 0}},
            {"collision": {"iterations": "50"}},
            {"layout": {"map_size": "big"}},
            {"word_source": {"timeout": "fast"}},
            {"word_source": {"min_words": "3"}},
        ],
    )
    def test_invalid_values(self, data):
        with pytest.raises(ConfigError):
            WordWebConfig.from_dict(data)

    def test_to_dict_sections(self):
        data = WordWebConfig().to_dict()

        assert set(data) == {"layout", "collision", "word_source"}
        assert data["collision"]["iterations"] == 50
