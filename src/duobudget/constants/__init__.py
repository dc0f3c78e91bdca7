"""Static data shared across DuoBudget."""
