"""Core components for link scheduling simulation.

This module contains the fundamental classes for link scheduling simulation,
including Packet, Flow, Port and the DRR, WFQ and WRR schedulers.
"""
