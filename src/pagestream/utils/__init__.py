"""Shared utilities for pagestream."""
