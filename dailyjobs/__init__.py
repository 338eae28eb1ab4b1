"""Daily cost-accounting jobs with bounded retry."""
