"""Link GitHub pull requests to Backlog issues"""

__version__ = "1.0.0"
