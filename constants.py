from enum import Enum
from pathlib import Path

# --- Database Layout ---
DEFAULT_DATABASE_DIR = Path("db")
MCU_DIR = "mcu"
IP_DIR = "IP"
DESCRIPTOR_EXT = ".xml.gz"


# --- Descriptor Filenames ---
class DescriptorFilename(Enum):
    """Filename templates of the compressed descriptors in the database."""

    PART = "{part}" + DESCRIPTOR_EXT
    GPIO_MODES = "GPIO-{version}_Modes" + DESCRIPTOR_EXT


# --- Descriptor Vocabulary ---
GPIO_IP_NAME = "GPIO"
AF_VALUE_PREFIX = "GPIO_AF"
REMAP_MARKER = "REMAP"

# --- Table Layout ---
# AF0 to AF15, then one column for additional functions.
AF_COLUMN_COUNT = 17
ADDITIONAL_FUNCTION_HEADER = "AddF"

# --- Logging ---
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
