"""Table-level repositories. Each takes an open aiosqlite connection per call."""
