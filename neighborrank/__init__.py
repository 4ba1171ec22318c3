"""Personalized multi-hop neighbor ranking over property graphs."""
