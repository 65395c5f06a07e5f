"""dotsnapshot — point-in-time snapshots of configuration domains."""

__version__ = "0.1.0"
