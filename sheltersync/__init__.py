"""ShelterSync pet adoption API."""
