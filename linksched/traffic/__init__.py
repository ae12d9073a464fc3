"""Traffic generation for link scheduling simulation.

This module provides functions for building flows from constant, Poisson and
bursty arrival patterns with constant or variable packet sizes.
"""
