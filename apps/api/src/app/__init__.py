"""GritSync API application package."""
