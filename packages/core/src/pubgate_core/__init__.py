"""Version-change detection and publish decisions for CI pipelines."""
