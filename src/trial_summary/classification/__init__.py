"""Dose-window classification."""
