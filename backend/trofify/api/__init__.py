"""HTTP routers for the realtime service."""
