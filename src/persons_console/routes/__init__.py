"""HTTP routes exposing the list view model and commands."""
