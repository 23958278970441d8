"""HTTP API and server-rendered pages for Settlr."""
