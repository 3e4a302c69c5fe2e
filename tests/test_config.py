import logging

import pytest

from cloudtree import config as ct_config


def _clear_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in [
        "CLOUDTREE_PRECISION",
        "CLOUDTREE_ENABLE_NUMBA",
        "CLOUDTREE_ENABLE_DIAGNOSTICS",
        "CLOUDTREE_LOG_LEVEL",
        "CLOUDTREE_KDTREE_LEAF_SIZE",
        "CLOUDTREE_KDTREE_INCREMENTAL",
    ]:
        monkeypatch.delenv(key, raising=False)


@pytest.fixture(autouse=True)
def _reset_cache():
    yield
    ct_config.reset_runtime_config_cache()


def test_runtime_config_defaults(monkeypatch: pytest.MonkeyPatch):
    _clear_env(monkeypatch)
    ct_config.reset_runtime_config_cache()

    runtime = ct_config.runtime_config()

    assert runtime.precision == "float64"
    assert runtime.enable_numba is False
    assert runtime.enable_diagnostics is True
    assert runtime.log_level == "INFO"
    assert runtime.kdtree_leaf_size == 16
    assert runtime.kdtree_incremental is True


def test_runtime_config_env_overrides(monkeypatch: pytest.MonkeyPatch):
    _clear_env(monkeypatch)
    monkeypatch.setenv("CLOUDTREE_PRECISION", "Float32")
    monkeypatch.setenv("CLOUDTREE_ENABLE_NUMBA", "yes")
    monkeypatch.setenv("CLOUDTREE_ENABLE_DIAGNOSTICS", "off")
    monkeypatch.setenv("CLOUDTREE_LOG_LEVEL", "debug")
    monkeypatch.setenv("CLOUDTREE_KDTREE_LEAF_SIZE", "3")
    monkeypatch.setenv("CLOUDTREE_KDTREE_INCREMENTAL", "false")
    ct_config.reset_runtime_config_cache()

    runtime = ct_config.runtime_config()

    assert runtime.precision == "float32"
    assert runtime.enable_numba is True
    assert runtime.enable_diagnostics is False
    assert runtime.log_level == "DEBUG"
    assert runtime.kdtree_leaf_size == 3
    assert runtime.kdtree_incremental is False
    assert logging.getLogger("cloudtree").level == logging.DEBUG


def test_runtime_config_is_cached_until_reset(monkeypatch: pytest.MonkeyPatch):
    _clear_env(monkeypatch)
    ct_config.reset_runtime_config_cache()
    first = ct_config.runtime_config()

    monkeypatch.setenv("CLOUDTREE_KDTREE_LEAF_SIZE", "7")

    assert ct_config.runtime_config() is first
    ct_config.reset_runtime_config_cache()
    assert ct_config.runtime_config().kdtree_leaf_size == 7


def test_unrecognised_boolean_falls_back_to_default(monkeypatch: pytest.MonkeyPatch):
    _clear_env(monkeypatch)
    monkeypatch.setenv("CLOUDTREE_KDTREE_INCREMENTAL", "maybe")
    ct_config.reset_runtime_config_cache()

    assert ct_config.runtime_config().kdtree_incremental is True


@pytest.mark.parametrize(
    "key, value",
    [
        ("CLOUDTREE_PRECISION", "float16"),
        ("CLOUDTREE_KDTREE_LEAF_SIZE", "0"),
        ("CLOUDTREE_KDTREE_LEAF_SIZE", "-4"),
        ("CLOUDTREE_KDTREE_LEAF_SIZE", "many"),
    ],
)
def test_invalid_values_raise(monkeypatch: pytest.MonkeyPatch, key, value):
    _clear_env(monkeypatch)
    monkeypatch.setenv(key, value)
    ct_config.reset_runtime_config_cache()

    with pytest.raises(ValueError):
        ct_config.runtime_config()


def test_describe_runtime_reports_active_settings(monkeypatch: pytest.MonkeyPatch):
    _clear_env(monkeypatch)
    monkeypatch.setenv("CLOUDTREE_KDTREE_LEAF_SIZE", "32")
    ct_config.reset_runtime_config_cache()

    summary = ct_config.describe_runtime()

    assert summary == {
        "precision": "float64",
        "enable_numba": False,
        "enable_diagnostics": True,
        "log_level": "INFO",
        "kdtree_leaf_size": 32,
        "kdtree_incremental": True,
    }
