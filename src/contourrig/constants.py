"""Shared constants and paths for contourrig."""

from pathlib import Path

# Package paths
PACKAGE_ROOT = Path(__file__).parent
CONFIG_DIR = PACKAGE_ROOT / "config"

# Alpha thresholds (0-255)
ALPHA_THRESHOLD = 128            # silhouette / contour extraction
TRIANGLE_INSIDE_THRESHOLD = 48   # looser test keeps anti-aliased limbs

# Contour extraction
MAX_CONTOUR_POINTS = 180
CONTOUR_TOLERANCE = 0.0015       # Douglas-Peucker, normalized units

# Vertex weights
WEIGHT_EPSILON = 0.02
MAX_INFLUENCES = 4
MIN_RELATIVE_WEIGHT = 0.01
WEIGHT_SUM_FLOOR = 1e-9

# Bones that usually sit outside the alpha mask; excluded from triangulation
# but still used for weights.
DEFAULT_EXTREMITY_BONES = {
    "human": ("fingertip_l", "fingertip_r", "toe_l", "toe_r"),
    "animal": (),
    "bird": (),
}

# Bone suggestion
CLAMP_BLEND = 0.3
CLAMP_ITERATIONS = 20
SUGGEST_PAD = 0.02

# Rendering
AFFINE_DET_EPSILON = 1e-10
SEAM_OVERLAP_PX = 1.0

# Preview loop
TARGET_FPS = 60
MAX_DELTA_TIME = 0.1  # Clamp dt to avoid large jumps

# Matting service
DEFAULT_MATTING_HOST = "127.0.0.1"
DEFAULT_MATTING_PORT = 19815
MATTING_TIMEOUT = 120.0
MATTING_RETRIES = 5
MATTING_RETRY_DELAY = 0.3
