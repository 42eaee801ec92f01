"""StatusPulse - HTTP/TCP uptime checks and uptime statistics."""
