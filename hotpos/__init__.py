"""Restaurant point-of-sale terminal front end."""
