"""State layer.

This package is the single source of truth for how incoming feed batches
are merged into per-driver "latest value" maps and how those maps, plus
the race-control log, are derived into standings and a track status.
Everything here is synchronous and free of I/O.
"""
