"""Core dispatch workflow.

This module contains the components that turn a decoded payload into player
launches: the per-instruction dispatcher and the two-phase URI handler that
drives it.
"""
