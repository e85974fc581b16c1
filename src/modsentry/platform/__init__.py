"""Chat platform boundary: the interface the core needs and its Discord implementation."""
