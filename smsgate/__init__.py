"""SMS inbound gatekeeper."""
