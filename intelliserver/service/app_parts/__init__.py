"""Request models, envelopes and dependencies shared by the service routes."""
