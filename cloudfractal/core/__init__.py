"""Parameter handling and escape-time evaluation."""
