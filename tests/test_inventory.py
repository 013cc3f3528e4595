"""Tests for device inventory management."""
import pytest
import tempfile
import os
from gnmi_network_switch.config.inventory import DeviceInventory
from gnmi_network_switch.devices.base import DeviceConfig


class TestDeviceInventory:
    """Tests for DeviceInventory class."""

    @pytest.fixture
    def temp_config(self):
        """Create a temporary config file for testing."""
        config_content = """
defaults:
  password_env: "TEST_PASSWORD"
  timeout: 30
  retries: 3

devices:
  leaf-1:
    type: nxos
    name: "Leaf 1"
    host: 10.0.0.11
    username: admin
    max_paths_per_request: 10

  spine-1:
    type: openconfig
    host: 10.0.0.1
    port: 6030
    username: admin
    dry_run: true
    site: fra1
"""
        with tempfile.NamedTemporaryFile(mode='w', suffix='.yaml', delete=False) as f:
            f.write(config_content)
            f.flush()
            yield f.name
        os.unlink(f.name)

    def test_load_config(self, temp_config):
        """Inventory loads config file correctly."""
        inv = DeviceInventory(temp_config)
        device_ids = inv.get_device_ids()
        assert "leaf-1" in device_ids
        assert "spine-1" in device_ids

    def test_get_raw_config(self, temp_config):
        """Can get raw device config."""
        inv = DeviceInventory(temp_config)
        config = inv.get_raw_config("leaf-1")
        assert config["type"] == "nxos"
        assert config["host"] == "10.0.0.11"
        # Defaults should be merged
        assert config["timeout"] == 30
        assert config["retries"] == 3

    def test_get_device_config(self, temp_config):
        """Typed config carries gNMI options."""
        inv = DeviceInventory(temp_config)
        config = inv.get_device_config("leaf-1")
        assert isinstance(config, DeviceConfig)
        assert config.name == "Leaf 1"
        assert config.port == 9339
        assert config.max_paths_per_request == 10
        assert config.dry_run is False
        assert config.target == "10.0.0.11:9339"

    def test_name_defaults_to_device_id(self, temp_config):
        inv = DeviceInventory(temp_config)
        config = inv.get_device_config("spine-1")
        assert config.name == "spine-1"
        assert config.dry_run is True
        assert config.port == 6030

    def test_unknown_keys_kept_as_extra(self, temp_config):
        inv = DeviceInventory(temp_config)
        assert inv.get_device_config("spine-1").extra == {"site": "fra1"}

    def test_get_device_unknown(self, temp_config):
        """Unknown device raises KeyError."""
        inv = DeviceInventory(temp_config)
        with pytest.raises(KeyError) as exc_info:
            inv.get_device_config("nonexistent")
        assert "Unknown device" in str(exc_info.value)

    def test_get_devices_by_type(self, temp_config):
        """Can filter devices by type."""
        inv = DeviceInventory(temp_config)
        assert inv.get_devices_by_type("nxos") == ["leaf-1"]
        assert inv.get_devices_by_type("eos") == []

    def test_defaults_applied(self, temp_config):
        """Default values are applied to all devices."""
        inv = DeviceInventory(temp_config)
        leaf = inv.get_device_config("leaf-1")
        spine = inv.get_device_config("spine-1")
        assert leaf.password_env == "TEST_PASSWORD"
        assert spine.password_env == "TEST_PASSWORD"

    def test_password_from_env(self, temp_config, monkeypatch):
        monkeypatch.setenv("TEST_PASSWORD", "secret")
        inv = DeviceInventory(temp_config)
        assert inv.get_device_config("leaf-1").get_password() == "secret"

    def test_missing_required_field(self):
        """Missing required fields are reported as ValueError."""
        config_content = """
devices:
  broken:
    type: nxos
"""
        with tempfile.NamedTemporaryFile(mode='w', suffix='.yaml', delete=False) as f:
            f.write(config_content)
            f.flush()
            inv = DeviceInventory(f.name)
        os.unlink(f.name)
        with pytest.raises(ValueError, match="broken"):
            inv.get_device_config("broken")

    def test_empty_file(self):
        with tempfile.NamedTemporaryFile(mode='w', suffix='.yaml', delete=False) as f:
            f.write("")
            f.flush()
            inv = DeviceInventory(f.name)
        os.unlink(f.name)
        assert inv.get_device_ids() == []


class TestDeviceInventoryNoConfig:
    """Tests for DeviceInventory when no config file exists."""

    def test_explicit_path_not_found(self):
        """FileNotFoundError raised for a missing explicit path."""
        with pytest.raises(FileNotFoundError):
            DeviceInventory("/nonexistent/path/devices.yaml")

    def test_find_config_not_found(self, tmp_path, monkeypatch):
        """FileNotFoundError raised when no config file is found."""
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("HOME", str(tmp_path))
        if os.path.exists("/etc/switchsync/devices.yaml"):
            pytest.skip("system-wide inventory present")
        with pytest.raises(FileNotFoundError):
            DeviceInventory()

    def test_find_config_in_cwd(self, tmp_path, monkeypatch):
        (tmp_path / "configs").mkdir()
        (tmp_path / "configs" / "devices.yaml").write_text(
            "devices:\n  leaf-1:\n    type: nxos\n    host: 10.0.0.11\n    username: admin\n"
        )
        monkeypatch.chdir(tmp_path)
        inv = DeviceInventory()
        assert inv.get_device_ids() == ["leaf-1"]
