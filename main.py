#!/usr/bin/env python3
"""
clipline - Main Entry Point
Run from a checkout: python main.py --audio song.mp3 --clip intro.mp4:0:5
"""

from clipline.cli import main

if __name__ == "__main__":
    main()
