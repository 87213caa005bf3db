"""repo-spark: engineering metrics derived from GitHub commit history."""

__version__ = "0.1.0"
