"""Business logic. Services raise ``worktrail.errors`` types and commit their own work."""
