"""media-dates: check media dates against folder names and normalize file names."""

__version__ = "0.1.0"
