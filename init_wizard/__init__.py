"""Deployment wizard for cluster initialization packages."""
