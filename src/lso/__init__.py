"""LSO - carrier recovery tracking and grading."""

__version__ = "0.2.0"
