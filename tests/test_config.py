from pathlib import Path

import pytest

from faceverify.config import VerificationConfig, load_config


def test_defaults_match_named_constants():
    config = VerificationConfig()
    assert config.eye_level_ratio == 0.3
    assert config.nose_center_ratio == 0.4
    assert config.distance_threshold == 0.6
    assert config.providers is None


def test_load_config_missing_file_uses_defaults(tmp_path: Path):
    config = load_config(tmp_path / "missing.yaml")
    assert config == VerificationConfig()


def test_load_config_reads_yaml(tmp_path: Path):
    path = tmp_path / "verification.yaml"
    path.write_text(
        "distance_threshold: 0.5\n"
        "det_size: [320, 320]\n"
        "providers: [CPUExecutionProvider]\n"
        "unknown_key: 1\n",
        encoding="utf-8",
    )
    config = load_config(path)
    assert config.distance_threshold == 0.5
    assert config.det_size == (320, 320)
    assert config.providers == ("CPUExecutionProvider",)
    assert config.eye_level_ratio == 0.3


def test_null_values_keep_defaults():
    config = VerificationConfig.from_mapping({"nose_center_ratio": None})
    assert config.nose_center_ratio == 0.4


def test_shipped_config_matches_defaults():
    path = Path(__file__).resolve().parents[1] / "configs" / "verification.yaml"
    config = load_config(path)
    assert config.distance_threshold == 0.6
    assert config.eye_level_ratio == 0.3
    assert config.nose_center_ratio == 0.4


@pytest.mark.parametrize("key", ["eye_level_ratio", "nose_center_ratio", "distance_threshold"])
def test_non_positive_thresholds_rejected(key):
    with pytest.raises(ValueError):
        VerificationConfig(**{key: 0.0})


def test_non_mapping_yaml_rejected(tmp_path: Path):
    path = tmp_path / "bad.yaml"
    path.write_text("- 1\n- 2\n", encoding="utf-8")
    with pytest.raises(ValueError):
        load_config(path)
