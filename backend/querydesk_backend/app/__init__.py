"""QueryDesk application."""
