"""Virtual consultant avatar backend."""
