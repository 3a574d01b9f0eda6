import os
import tempfile
from unittest.mock import patch

import pytest
import yaml

from app.config import ConfigurationService, setup_config
from app.config.log import parse_file_size
from app.config.models import ConfigModel


def _write_yaml(content: str) -> str:
    with tempfile.NamedTemporaryFile(mode='w', suffix='.yaml', delete=False) as f:
        f.write(content)
        return f.name


@pytest.mark.parametrize("scenario,config_data,validation,should_raise,error_match", [
    ("defaults for non-existent file",
     None,
     lambda c: c.cors_allow_origins == ['*'] and c.host == '127.0.0.1' and c.port == 3001 and c.bridge.request_timeout == 120,
     False, None),
    ("values from yaml file",
     {'cors_allow_origins': ['http://test.com'], 'host': '0.0.0.0', 'port': 9000, 'bridge': {'request_timeout': 5}},
     lambda c: c.cors_allow_origins == ['http://test.com'] and c.host == '0.0.0.0' and c.port == 9000 and c.bridge.request_timeout == 5,
     False, None),
    ("invalid yaml",
     '{ invalid yaml',
     None,
     True, 'Invalid YAML'),
])
def test_config_loading(scenario, config_data, validation, should_raise, error_match):
    """Test configuration loading scenarios."""
    with patch.dict(os.environ, {}, clear=True):
        if config_data is None:
            config = ConfigModel.load('non-existent-config.yaml')
            assert validation(config)
            return

        temp_path = _write_yaml(config_data if isinstance(config_data, str) else yaml.safe_dump(config_data))
        try:
            if should_raise:
                with pytest.raises(ValueError, match=error_match):
                    ConfigModel.load(temp_path)
            else:
                assert validation(ConfigModel.load(temp_path))
        finally:
            os.unlink(temp_path)


def test_config_validation():
    """Test that ConfigModel validates fields correctly."""
    valid_config = ConfigModel(port=8080, host='localhost')
    assert valid_config.port == 8080

    with pytest.raises(Exception):
        ConfigModel(port=0)
    with pytest.raises(Exception):
        ConfigModel(port=65536)
    with pytest.raises(Exception):
        ConfigModel(bridge={'request_timeout': 0})


def test_openai_defaults():
    config = ConfigModel()
    assert config.openai.model_aliases == {'gpt-3.5-turbo': 'claude-sonnet-4', 'gpt-4': 'claude-sonnet-4'}
    assert config.openai.advertised_models == ['gpt-3.5-turbo', 'gpt-4']
    assert config.openai.forward_full_conversation is False


def test_config_env_tags_with_defaults():
    """!env tags fall back to their defaults when variables are unset."""
    temp_path = _write_yaml(
        """
host: !env [TEST_HOST, "127.0.0.1"]
port: !env [TEST_PORT, 3001]
bridge:
  request_timeout: !env [TEST_TIMEOUT, 30]
"""
    )
    try:
        with patch.dict(os.environ, {}, clear=True):
            config = ConfigModel.load(temp_path)
            assert config.host == '127.0.0.1'
            assert config.port == 3001
            assert config.bridge.request_timeout == 30
    finally:
        os.unlink(temp_path)


def test_config_required_env_tag():
    temp_path = _write_yaml('session_token: !env TEST_SESSION_TOKEN\n')
    try:
        with patch.dict(os.environ, {'TEST_SESSION_TOKEN': 'abc'}, clear=True):
            assert ConfigModel.load(temp_path).session_token == 'abc'
        with patch.dict(os.environ, {}, clear=True):
            with pytest.raises(ValueError, match='TEST_SESSION_TOKEN'):
                ConfigModel.load(temp_path)
    finally:
        os.unlink(temp_path)


@pytest.mark.parametrize(
    'env_var,env_value,getter,expected',
    [
        ('BRIDGE_HOST', '0.0.0.0', lambda c: c.host, '0.0.0.0'),
        ('BRIDGE_PORT', '9000', lambda c: c.port, 9000),
        ('BRIDGE_REQUEST_TIMEOUT', '2.5', lambda c: c.bridge.request_timeout, 2.5),
        ('BRIDGE_SESSION_TOKEN', 'tok', lambda c: c.session_token, 'tok'),
    ],
)
def test_bridge_env_overrides(env_var, env_value, getter, expected):
    """BRIDGE_* variables win over the YAML file."""
    temp_path = _write_yaml('host: 127.0.0.1\nport: 3001\nbridge:\n  request_timeout: 120\n')
    try:
        with patch.dict(os.environ, {env_var: env_value}, clear=True):
            assert getter(ConfigModel.load(temp_path)) == expected
    finally:
        os.unlink(temp_path)


def test_config_invalid_env_var_values():
    with patch.dict(os.environ, {'BRIDGE_PORT': 'not-a-number'}, clear=True):
        with pytest.raises(Exception) as exc_info:
            ConfigModel.load('non-existent-config.yaml')
        assert 'validation error' in str(exc_info.value).lower()


def test_save_writes_loadable_yaml(tmp_path):
    path = tmp_path / 'config.yaml'
    ConfigModel(port=4000, session_token='t').save(str(path))

    with patch.dict(os.environ, {}, clear=True):
        loaded = ConfigModel.load(str(path))
    assert loaded.port == 4000
    assert loaded.session_token == 't'


def test_configuration_service_accepts_prebuilt_config():
    config = ConfigModel(port=1234)
    service = ConfigurationService(config=config)
    assert service.get_config() is config


def test_setup_config_writes_default(tmp_path):
    with patch('app.config.get_app_dir', return_value=tmp_path / '.browser-bridge'):
        setup_config()
        setup_config()
    assert (tmp_path / '.browser-bridge' / 'config.yaml').exists()


@pytest.mark.parametrize('value,expected', [('10MB', 10 * 1024**2), ('512KB', 512 * 1024), ('2G', 2 * 1024**3), ('100', 100 * 1024**2), ('junk', 10 * 1024**2)])
def test_parse_file_size(value, expected):
    assert parse_file_size(value) == expected


def test_reload_config_reads_file_again(tmp_path):
    path = tmp_path / 'config.yaml'
    path.write_text('port: 4000\n')

    with patch.dict(os.environ, {}, clear=True):
        service = ConfigurationService(str(path))
        assert service.get_config().port == 4000

        path.write_text('port: 4001\n')
        assert service.reload_config().port == 4001
        assert service.get_config().port == 4001
