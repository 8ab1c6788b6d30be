import json
import logging
from dataclasses import asdict, dataclass
from typing import IO, Callable, Optional

from .broker import MQTTBroker
from .certs import load_ca_certs, new_tls_context
from .errors import ConfigError, NotFoundError
from .options import ClientOptions, Option, new_paho_client

AZURE_DEVICES_ENDPOINT = "azure-devices.net"

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Device:
    """An IoT Hub device"""

    hub_name: str
    device_id: str
    cert_path: str = ""
    priv_key_path: str = ""

    @classmethod
    def from_dict(cls, data: dict) -> "Device":
        for key in ("hub_name", "device_id"):
            if not data.get(key):
                raise ConfigError(f"device description is missing {key}")

        return cls(
            hub_name=data["hub_name"],
            device_id=data["device_id"],
            cert_path=data.get("cert_path", ""),
            priv_key_path=data.get("priv_key_path", ""),
        )

    def to_dict(self) -> dict:
        return asdict(self)

    def broker(self) -> MQTTBroker:
        return MQTTBroker(host=f"{self.hub_name}.{AZURE_DEVICES_ENDPOINT}")

    def client_id(self) -> str:
        """IoT Hub requires the device ID as the MQTT client ID"""
        return self.device_id

    def username(self) -> str:
        # The IoT Hub docs recommend appending "/?api-version=..." to the username, but
        # including it makes the broker refuse the connection ("Server Unavailable").
        return f"{self.hub_name}.{AZURE_DEVICES_ENDPOINT}/{self.device_id}"

    def command_topic(self) -> str:
        """The topic the device subscribes to for cloud-to-device messages"""
        return f"/devices/{self.device_id}/messages/devicebound/#"

    def telemetry_topic(self) -> str:
        """The topic the device publishes telemetry events to"""
        return f"/devices/{self.device_id}/messages/events"

    def new_client(
        self,
        ca_certs: IO,
        *options: Option,
        factory: Optional[Callable[[ClientOptions], object]] = None,
    ):
        """Create an MQTT client that connects to the device's hub over mutual TLS.

        ca_certs is a file-like object holding the PEM root certs used to verify the hub.
        The defaults are the minimum IoT Hub needs to accept a connection: broker,
        client ID, username and a TLS context carrying the device's cert. Each option
        is then called as option(device, opts) in the order given; an exception from
        any of them aborts construction. factory turns the final ClientOptions into a
        client and defaults to a paho Client.
        """
        ca_pool = load_ca_certs(ca_certs)
        tls_context = new_tls_context(ca_pool, self.cert_path, self.priv_key_path)

        broker = self.broker()
        logger.debug(f"Configuring client {self.client_id()} for broker {broker}")

        opts = ClientOptions(
            broker=broker,
            client_id=self.client_id(),
            username=self.username(),
            tls_context=tls_context,
        )

        for option in options:
            option(self, opts)

        return (factory or new_paho_client)(opts)


def load_device(path: str) -> Device:
    """Read a device description from a JSON file"""
    try:
        with open(path, "r") as f:
            data = json.load(f)
    except FileNotFoundError as err:
        raise NotFoundError(path, "device file") from err
    except json.JSONDecodeError as err:
        raise ConfigError(f"invalid device file {path}: {err}") from err

    if not isinstance(data, dict):
        raise ConfigError(f"invalid device file {path}: expected an object")

    return Device.from_dict(data)
