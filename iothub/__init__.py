"""Helpers for talking to Azure IoT Hub over MQTT.

Handles TLS configuration and authentication, and builds the fully-qualified
topics IoT Hub uses for telemetry and cloud-to-device messages.
"""
from .broker import MQTTBroker
from .certs import device_id_from_cert, load_ca_certs, new_tls_context
from .device import AZURE_DEVICES_ENDPOINT, Device, load_device
from .errors import ConfigError, DecodeError, IoTHubError, NotFoundError, ParseError
from .options import ClientOptions, Will, new_paho_client

__all__ = [
    "AZURE_DEVICES_ENDPOINT",
    "ClientOptions",
    "ConfigError",
    "DecodeError",
    "Device",
    "IoTHubError",
    "MQTTBroker",
    "NotFoundError",
    "ParseError",
    "Will",
    "device_id_from_cert",
    "load_ca_certs",
    "load_device",
    "new_paho_client",
    "new_tls_context",
]
