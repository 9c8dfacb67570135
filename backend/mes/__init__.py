"""Manufacturing execution back office."""
