"""Instance registry, connection store and mapping resolution."""
