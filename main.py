#!/usr/bin/env python3
"""
DTW Gestures - Main Entry Point
Train and run a DTW gesture classifier from the command line.
"""

import sys

from dtw_gestures.cli import main

if __name__ == "__main__":
    sys.exit(main())
