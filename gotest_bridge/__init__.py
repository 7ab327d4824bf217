"""Bridge between ``go test -json`` event streams and a discovered test tree."""
