"""
Default tracking configuration.

Values are passed into the filter and gate at construction; the core
never reads configuration from the environment or disk.
"""

# Position filter defaults
FILTER_CONFIG = {
    "process_noise": 1e-3,            # Q per update
    "accuracy_floor_m": 50.0,         # Accuracies below this are clamped
    "reference_accuracy_m": 50.0,     # Accuracy that maps to R = 1
    "initial_variance": 1.0,          # Axis variance at cold start
    "zero_altitude_is_unknown": True, # Altitude 0.0 means "not reported"
}

# Update gate defaults
GATE_CONFIG = {
    "min_distance_m": 0.5,            # Larger than residual filter jitter
    "max_interval_s": 2.0,            # Force an update at least this often
}

# Pipeline defaults
PIPELINE_CONFIG = {
    "reset_on_jump_m": None,          # Recalibrate on raw jumps beyond this (None = never)
}

# Logging defaults (used by scripts; the core only creates loggers)
LOGGING_CONFIG = {
    "level": "INFO",
    "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
}
