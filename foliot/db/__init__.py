"""Models and YAML persistence for Foliot."""
