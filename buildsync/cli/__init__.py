"""Buildsync command-line interface."""
