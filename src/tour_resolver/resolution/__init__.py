"""Landmark resolution: geometry helpers, cascade and tour orchestration."""
