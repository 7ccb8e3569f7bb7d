"""Quantum tiles component packages."""
