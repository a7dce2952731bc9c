"""PeakPerform backend."""
