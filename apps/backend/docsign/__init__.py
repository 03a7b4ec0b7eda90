"""Document signing workflow service."""
