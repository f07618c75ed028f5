"""HTTP middleware: logging, rate limiting and security headers."""
