"""Core building blocks: engines, processes, pipeline."""
