"""
clipline - assemble one video from a master audio track and timed clips
"""

__version__ = "0.1.0"
