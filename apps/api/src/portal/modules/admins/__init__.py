"""Administrative users."""
