"""Cross-cutting primitives shared by every dispatch module."""
