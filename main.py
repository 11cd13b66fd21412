#!/usr/bin/env python3
"""
Launcher for running the WolfWave bot from a source checkout
"""

from wolfwave.main import run

if __name__ == "__main__":
    run()
