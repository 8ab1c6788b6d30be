from dataclasses import dataclass

MQTT_TLS_PORT = 8883


@dataclass(frozen=True)
class MQTTBroker:
    """An MQTT server reachable over TLS"""

    host: str
    port: int = MQTT_TLS_PORT

    @property
    def url(self) -> str:
        return f"tls://{self.host}:{self.port}"

    def __str__(self):
        return self.url
