from dataclasses import dataclass, field
import os


def _env(name: str, default: str = "") -> str:
    return os.environ.get(name, default)


@dataclass
class AgentConfig:
    # JSON device description; when set it takes precedence over the fields below
    device_file: str = field(default_factory=lambda: _env("IOTHUB_DEVICE_FILE"))

    hub_name: str = field(default_factory=lambda: _env("IOTHUB_HUB_NAME"))
    # Empty means "use the Common Name of the device cert"
    device_id: str = field(default_factory=lambda: _env("IOTHUB_DEVICE_ID"))
    cert_path: str = field(
        default_factory=lambda: _env("IOTHUB_CERT_PATH", "device.x509")
    )
    priv_key_path: str = field(
        default_factory=lambda: _env("IOTHUB_KEY_PATH", "device.pem")
    )

    # Should contain the DigiCert Global Root G2 cert, among the other Azure root CAs
    ca_certs: str = field(
        default_factory=lambda: _env("IOTHUB_CA_CERTS", "roots.pem")
    )

    telemetry_interval_seconds: int = field(
        default_factory=lambda: int(_env("IOTHUB_TELEMETRY_INTERVAL_SECONDS", "60"))
    )
    log_level: str = field(default_factory=lambda: _env("IOTHUB_LOG_LEVEL", "INFO"))
