"""Default configurations for WordWeb."""

import math

# Canvas
MAP_SIZE = 4000  # Square canvas edge in pixels; the root starts at its center
ROOT_NODE_ID = "root"

# Radial placement
REFERENCE_ANGLE = -math.pi / 2  # "Up" on a y-down canvas
CHILD_ARC = (4 / 3) * math.pi  # 240° fan for non-root parents
ROOT_ARC = 2 * math.pi
RADIUS_BASE = 350.0  # radius = max(RADIUS_FLOOR, RADIUS_BASE / (depth + RADIUS_DEPTH_OFFSET))
RADIUS_DEPTH_OFFSET = 1.5
RADIUS_FLOOR = 120.0

# Node footprint: size(depth) = max(NODE_SIZE_MIN, NODE_SIZE_MAX - NODE_SIZE_STEP * depth)
NODE_SIZE_MAX = 90.0
NODE_SIZE_MIN = 40.0
NODE_SIZE_STEP = 10.0

# Collision relaxation
COLLISION_ITERATIONS = 50
COLLISION_PADDING = 10.0
COLLISION_PUSH_FACTOR = 0.5  # Share of the overlap each node moves per step

# Word generation
MIN_RELATED_WORDS = 5
MAX_RELATED_WORDS = 10

DEFAULT_LLM_MODELS = {
    "openai": "gpt-4o-mini",
    "openrouter": "google/gemini-2.5-flash",
}

LLM_API_ENDPOINTS = {
    "openai": "https://api.openai.com/v1/chat/completions",
    "openrouter": "https://openrouter.ai/api/v1/chat/completions",
}

LLM_TIMEOUT_SECONDS = 30.0

# Config file looked up by the CLI when --config is not given
DEFAULT_CONFIG_FILENAME = "wordweb.yaml"
