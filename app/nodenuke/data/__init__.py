"""Bundled data files for nodenuke."""
