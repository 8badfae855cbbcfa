"""YouTube info and download gateway"""

__version__ = "2.1.0"
