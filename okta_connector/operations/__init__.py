"""Operation descriptors, their registry and the Okta catalogue."""
