"""MapSnap HTTP API."""
