import os

# 8-bit grayscale: the scaling constant and every table size derive from this
NUM_LEVELS = 256
MAX_INTENSITY = NUM_LEVELS - 1

DEFAULT_IMAGE_PATH = "pollen.jpg"
OUTPUT_FOLDER = os.environ.get("HISTEQ_OUTPUT_DIR", "enhanced_images")
DEFAULT_WORKERS = 1

PAGE_TITLE = "Histogram Equalization"
PAGE_ICON = "📊"
