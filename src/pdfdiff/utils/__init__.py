"""Image and file helpers used by the pipeline."""
