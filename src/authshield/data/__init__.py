"""Data layer - schemas shared by the controls, the store and the API."""
