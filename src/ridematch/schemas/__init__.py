"""Request, response and provider schemas."""
