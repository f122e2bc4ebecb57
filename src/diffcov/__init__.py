"""diffcov — coverage of the files changed in a pull request."""

__version__ = "0.1.0"
