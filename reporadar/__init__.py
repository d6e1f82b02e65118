"""Repo Radar — watch repositories across hosting platforms for releases, stars and issues."""

__version__ = "0.1.0"
