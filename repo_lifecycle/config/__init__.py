"""Engine configuration: defaults, YAML loading and validation."""
