"""Call graph worker: consumes artifact coordinates and publishes call graphs."""
