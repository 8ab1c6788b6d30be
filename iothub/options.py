import logging
import ssl
from dataclasses import dataclass
from typing import Any, Callable, Optional, Tuple

import paho.mqtt.client as mqtt

from .broker import MQTTBroker
from .errors import ConfigError

logger = logging.getLogger(__name__)


@dataclass
class Will:
    topic: str
    payload: Optional[bytes] = None
    qos: int = 0
    retain: bool = False


@dataclass
class ClientOptions:
    """Everything needed to construct an MQTT client for a device.

    Device.new_client fills in broker, client_id, username and tls_context;
    options may change any field afterwards.
    """

    broker: Optional[MQTTBroker] = None
    client_id: str = ""
    username: Optional[str] = None
    password: Optional[str] = None
    tls_context: Optional[ssl.SSLContext] = None

    # IoT Hub only speaks MQTT 3.1.1
    protocol: int = mqtt.MQTTv311
    keepalive: int = 60
    clean_session: bool = True
    connect_timeout: float = 5.0
    reconnect_delay: Tuple[int, int] = (1, 120)
    will: Optional[Will] = None
    userdata: Any = None
    enable_logger: bool = True


# An option receives the device and the options being built. Raising aborts construction.
Option = Callable[[Any, ClientOptions], None]


def new_paho_client(opts: ClientOptions) -> mqtt.Client:
    """Create a paho Client from opts and register the broker address.

    No network I/O happens here; call loop_start() or reconnect() on the result to connect.
    """
    if opts.broker is None:
        raise ConfigError("no broker configured")

    client = mqtt.Client(
        mqtt.CallbackAPIVersion.VERSION2,
        client_id=opts.client_id,
        clean_session=opts.clean_session,
        userdata=opts.userdata,
        protocol=opts.protocol,
    )
    if opts.enable_logger:
        client.enable_logger()

    if opts.username is not None:
        client.username_pw_set(opts.username, password=opts.password)
    if opts.tls_context is not None:
        client.tls_set_context(opts.tls_context)
    if opts.will is not None:
        client.will_set(
            opts.will.topic, opts.will.payload, qos=opts.will.qos, retain=opts.will.retain
        )

    client.connect_timeout = opts.connect_timeout
    client.reconnect_delay_set(*opts.reconnect_delay)

    logger.debug(f"Registering broker {opts.broker} for client {opts.client_id}")
    client.connect_async(opts.broker.host, opts.broker.port, keepalive=opts.keepalive)
    return client


def keepalive(seconds: int) -> Option:
    def option(device, opts: ClientOptions):
        if seconds < 0:
            raise ConfigError(f"keepalive must not be negative: {seconds}")
        opts.keepalive = seconds

    return option


def clean_session(flag: bool) -> Option:
    def option(device, opts: ClientOptions):
        opts.clean_session = flag

    return option


def connect_timeout(seconds: float) -> Option:
    def option(device, opts: ClientOptions):
        if seconds < 0:
            raise ConfigError(f"connect timeout must not be negative: {seconds}")
        opts.connect_timeout = seconds

    return option


def reconnect_delay(min_delay: int = 1, max_delay: int = 120) -> Option:
    def option(device, opts: ClientOptions):
        if min_delay < 0 or max_delay < min_delay:
            raise ConfigError(f"invalid reconnect delay: {min_delay}..{max_delay}")
        opts.reconnect_delay = (min_delay, max_delay)

    return option


def last_will(topic: str, payload=None, qos: int = 0, retain: bool = False) -> Option:
    def option(device, opts: ClientOptions):
        if qos not in (0, 1, 2):
            raise ConfigError(f"invalid qos for last will: {qos}")
        if isinstance(payload, str):
            data = payload.encode("utf-8")
        else:
            data = payload
        opts.will = Will(topic=topic, payload=data, qos=qos, retain=retain)

    return option


def userdata(value) -> Option:
    def option(device, opts: ClientOptions):
        opts.userdata = value

    return option
