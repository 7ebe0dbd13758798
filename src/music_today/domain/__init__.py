"""Domain layer - tracking and provider integrations."""
