import datetime
import json
import logging
import time

import paho.mqtt.client as mqtt
import schedule

from .certs import device_id_from_cert
from .config import AgentConfig
from .device import Device, load_device
from .options import userdata

logger = logging.getLogger(__name__)

_started = time.monotonic()


def resolve_device(config: AgentConfig) -> Device:
    """Build the Device from a description file, or from the individual config fields"""
    if config.device_file:
        return load_device(config.device_file)

    device_id = config.device_id or device_id_from_cert(config.cert_path)
    return Device.from_dict(
        {
            "hub_name": config.hub_name,
            "device_id": device_id,
            "cert_path": config.cert_path,
            "priv_key_path": config.priv_key_path,
        }
    )


def get_mqtt_client(config: AgentConfig, device: Device) -> mqtt.Client:
    """Create an mqtt client for the device; the connection is made once the loop starts"""
    with open(config.ca_certs, "rb") as certs:
        mqtt_client = device.new_client(certs, userdata(device))

    mqtt_client.on_connect = on_mqtt_connect
    mqtt_client.on_disconnect = on_mqtt_disconnect
    return mqtt_client


def on_mqtt_connect(client: mqtt.Client, device: Device, flags, reason_code, properties):
    """The callback for when the client receives a CONNACK response from the server"""
    logger.debug(f"on_mqtt_connect() flags = {flags}, reason_code = {reason_code}")
    if reason_code.is_failure:
        logger.warning(f"Connection refused: {reason_code}")
        return

    # Cloud-to-device messages arrive on this topic
    command_topic = device.command_topic()
    logger.debug(f"Subscribing to {command_topic}")

    client.message_callback_add(command_topic, on_mqtt_command_message)
    client.subscribe(command_topic, qos=1)


def on_mqtt_disconnect(client: mqtt.Client, device: Device, flags, reason_code, properties):
    logger.info(f"Disconnected from {device.broker()}: {reason_code}")


def on_mqtt_command_message(client, device, message):
    """Handle cloud-to-device messages"""
    logger.info(f"Command on {message.topic}: {message.payload!r}")


def collect(device: Device) -> dict:
    return {
        "measurement": "heartbeat",
        "time": datetime.datetime.now(datetime.timezone.utc).isoformat(),
        "tags": {"device_id": device.device_id},
        "fields": {"uptime_seconds": round(time.monotonic() - _started, 3)},
    }


def perform_and_upload_collection(collect_fn, device: Device, mqtt_client: mqtt.Client):
    collection = collect_fn(device)
    info = mqtt_client.publish(device.telemetry_topic(), json.dumps(collection), qos=1)
    logger.debug(f"Published to {device.telemetry_topic()} (mid = {info.mid})")
    return info


def main():
    config = AgentConfig()
    logging.basicConfig(level=config.log_level.upper())

    device = resolve_device(config)
    mqtt_client = get_mqtt_client(config, device)
    logger.info(f"Connecting {device.client_id()} to {device.broker()}")
    mqtt_client.loop_start()

    schedule.every(config.telemetry_interval_seconds).seconds.do(
        perform_and_upload_collection, collect, device, mqtt_client
    )

    try:
        while True:
            schedule.run_pending()
            time.sleep(1)

    except KeyboardInterrupt:
        logger.info("Stopping")

    finally:
        schedule.clear()
        mqtt_client.loop_stop()
        mqtt_client.disconnect()


if __name__ == "__main__":
    main()
