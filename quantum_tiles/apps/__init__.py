"""Applications built on the quantum tiles engine."""
