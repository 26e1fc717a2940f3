"""Summary: Storage backends for opsdash."""
