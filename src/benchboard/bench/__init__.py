"""Benchmark scheduling subsystem for benchboard.

Builds a registry of benchmark versions from a catalog, runs them
strictly one after another, and turns their timing samples into
regression and density statistics for the dashboard.
"""
