"""Constants for the Qubino Flush RGBW integration."""
from enum import Enum, IntEnum
from typing import Final

DOMAIN: Final = "qubino_rgbw"

# Configuration keys
CONF_NODE_ID: Final = "node_id"
CONF_ENDPOINT: Final = "endpoint"
CONF_TOPIC_PREFIX: Final = "topic_prefix"
CONF_GATEWAY_NAME: Final = "gateway_name"
CONF_COMMAND_CLASS_VERSION: Final = "command_class_version"
CONF_TRANSITION_DURATION: Final = "transition_duration"
CONF_TRANSITION_DURATION_UNIT: Final = "transition_duration_unit"

# Default values
DEFAULT_ENDPOINT: Final = 0
DEFAULT_TOPIC_PREFIX: Final = "zwave"
DEFAULT_GATEWAY_NAME: Final = "zwave-js-ui"
DEFAULT_COMMAND_CLASS_VERSION: Final = 3
DEFAULT_REQUEST_TIMEOUT: Final = 5.0  # seconds

DURATION_UNIT_SECONDS: Final = "s"
DURATION_UNIT_MINUTES: Final = "min"

# Timing (seconds)
DEBOUNCE_WINDOW: Final = 0.2
MODE_WRITE_DELAY: Final = 0.05
BOOT_RECONCILE_DELAY: Final = 0.5

# Z-Wave command classes
COMMAND_CLASS_SWITCH_MULTILEVEL: Final = 0x26
COMMAND_CLASS_SWITCH_COLOR: Final = 0x33

# Multilevel Switch levels run 0-99
MAX_LEVEL: Final = 99

# Duration encoding (Z-Wave duration byte)
DURATION_INSTANT: Final = 0x00
DURATION_MAX_SECONDS: Final = 0x7F
DURATION_MAX_MINUTES: Final = 0x7F
DURATION_FACTORY_DEFAULT: Final = 0xFF
# Settings store minute durations as 1000 + minutes
DURATION_MINUTES_OFFSET: Final = 1000

# Color Switch command class version whose parser mis-reads the duration field
FLAT_ENCODING_VERSION: Final = 2
# Lowest version accepting a per-command duration
DURATION_MIN_VERSION: Final = 1

# Color temperature range of the white strips (Kelvin)
MIN_KELVIN: Final = 2700
MAX_KELVIN: Final = 6500

MAX_INTENSITY: Final = 255


class ColorComponent(IntEnum):
    """Color Switch component identifiers used by the dimmer."""
    WARM_WHITE = 0
    COLD_WHITE = 1
    RED = 2
    GREEN = 3
    BLUE = 4


class LightMode(str, Enum):
    """Which channel group the dimmer is currently expressing."""
    COLOR = "color"
    TEMPERATURE = "temperature"
    UNKNOWN = "unknown"


# Property names of the Color Switch set options understood by the gateway
COMPONENT_PROPERTY_NAMES: Final = {
    ColorComponent.WARM_WHITE: "warmWhite",
    ColorComponent.COLD_WHITE: "coldWhite",
    ColorComponent.RED: "red",
    ColorComponent.GREEN: "green",
    ColorComponent.BLUE: "blue",
}
