"""Weather dashboard client with offline caching."""
