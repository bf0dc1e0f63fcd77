__all__ = ["WORKOUT_HEADER", "STATS_HEADER", "__version__"]

__version__ = "0.1.0"

# Column order for exported workout rows; (start, workout_type) identifies a row
WORKOUT_HEADER = [
    "start",
    "workout_type",
    "category",
    "end",
    "duration_s",
    "duration_min",
    "active_energy",
    "active_energy_unit",
    "distance",
    "distance_unit",
    "avg_heart_rate_bpm",
    "max_heart_rate_bpm",
    "step_count",
    "hr_points",
    "active_energy_points",
    "resting_energy_points",
    "distance_points",
    "step_points",
    "hr_recovery_points",
    "has_route",
]

# Long format for daily stats; (date, source, key) identifies a row
STATS_HEADER = ["date", "source", "key", "value"]
