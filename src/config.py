"""
Central configuration constants for the shape/size map seeding pipeline.
"""

import math
from pathlib import Path

# ========== Map naming ==========
SHAPE_MAP_NAME_PREFIX = "ShapeMap"  # display name is prefix + object label
SIZE_MAP_NAME_PREFIX = "Size"  # companion size map name prefix

# ========== Function-of-time seeding ==========
NUM_SEED_SLOTS = 4  # value plus three cached time derivatives
# SPHEREPACK a_00 -> standard Y_00 coefficient
SPHEREPACK_L0_TO_YLM_FACTOR: float = math.sqrt(0.5 * math.pi)
LOW_ORDER_MODE_CUTOFF = 2  # modes with l below this move to the size map

# ========== Archive matching ==========
DEFAULT_MATCH_TIME_EPSILON = 1e-12  # used when a subfile has a single sample
AUTO_EPSILON_STEP_FRACTION = 0.5  # fraction of the smallest time step

# ========== Archive legend columns ==========
TIME_COLUMN = "Time"
LMAX_COLUMN = "Lmax"
CENTER_COLUMNS = ["ExpansionCenter_x", "ExpansionCenter_y", "ExpansionCenter_z"]
LEGEND_SUFFIX = ".legend"
DATA_SUFFIX = ".data"

# ========== Configuration keys ==========
AUTO_KEYWORD = "Auto"
SPHERICAL_KEYWORDS = ("Spherical", "Unspecified")

# ========== Directory paths ==========
PROJECT_ROOT = Path(__file__).resolve().parent.parent  # project root directory
DEFAULT_OUTPUT_DIR = PROJECT_ROOT / "artifacts" / "functions_of_time"
