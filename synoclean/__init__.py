"""synoclean — remove Synology @eaDir directories from a remote host"""

__version__ = "1.0.0"
