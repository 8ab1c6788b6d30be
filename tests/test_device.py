import json

import pytest

from iothub import ConfigError, Device, MQTTBroker, NotFoundError, load_device

device = Device(hub_name="myhub", device_id="foo", priv_key_path="key.pem")


def test_client_id():
    assert device.client_id() == "foo"


def test_username():
    assert device.username() == "myhub.azure-devices.net/foo"


def test_username_has_no_api_version():
    # IoT Hub refuses connections when an api-version is appended
    assert "api-version" not in device.username()


def test_command_topic():
    assert device.command_topic() == "/devices/foo/messages/devicebound/#"


def test_telemetry_topic():
    assert device.telemetry_topic() == "/devices/foo/messages/events"


def test_derivation_is_repeatable():
    first = (device.client_id(), device.username(), device.command_topic(), device.telemetry_topic())
    second = (device.client_id(), device.username(), device.command_topic(), device.telemetry_topic())
    assert first == second
    assert device == Device(hub_name="myhub", device_id="foo", priv_key_path="key.pem")


def test_device_is_immutable():
    with pytest.raises(AttributeError):
        device.device_id = "bar"


def test_broker():
    broker = device.broker()
    assert broker == MQTTBroker(host="myhub.azure-devices.net", port=8883)
    assert broker.url == "tls://myhub.azure-devices.net:8883"
    assert str(broker) == broker.url


def test_from_dict_round_trip():
    data = {
        "hub_name": "my-hub",
        "device_id": "my-device",
        "cert_path": "my-device.x509",
        "priv_key_path": "my-device.pem",
    }
    assert Device.from_dict(data).to_dict() == data


def test_from_dict_defaults_paths():
    d = Device.from_dict({"hub_name": "h", "device_id": "d"})
    assert d.cert_path == ""
    assert d.priv_key_path == ""


@pytest.mark.parametrize(
    "data",
    [
        {"device_id": "d"},
        {"hub_name": "h"},
        {"hub_name": "", "device_id": "d"},
    ],
)
def test_from_dict_requires_names(data):
    with pytest.raises(ConfigError):
        Device.from_dict(data)


def test_load_device(tmp_path):
    path = tmp_path / "device.json"
    path.write_text(json.dumps({"hub_name": "myhub", "device_id": "foo"}))
    assert load_device(str(path)) == Device(hub_name="myhub", device_id="foo")


def test_load_device_missing(tmp_path):
    with pytest.raises(NotFoundError):
        load_device(str(tmp_path / "absent.json"))


@pytest.mark.parametrize("content", ["{not json", "[1, 2]"])
def test_load_device_invalid(tmp_path, content):
    path = tmp_path / "device.json"
    path.write_text(content)
    with pytest.raises(ConfigError):
        load_device(str(path))
