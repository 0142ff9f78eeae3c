"""
launchcore - bootstrap backbone of a desktop launcher.
"""
__version__ = "1.0.0"
