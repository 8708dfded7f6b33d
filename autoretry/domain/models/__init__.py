"""Value objects shared across the package."""
