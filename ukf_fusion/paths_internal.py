from pathlib import Path

# Path to the root of the installed package
PACKAGE_DIR = Path(__file__).parent

# Path to the configs directory
CONFIG_DIR = PACKAGE_DIR / "configs"

# Default filter configuration
DEFAULT_CONFIG_PATH = CONFIG_DIR / "default.yaml"
