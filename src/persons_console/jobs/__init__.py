"""Background jobs observed through status polling."""
