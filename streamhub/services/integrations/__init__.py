"""Clients for the systems streams are mirrored to and looked up in."""
