"""HTTP API for idscope."""
