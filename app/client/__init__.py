"""Client-side recording, upload and read-model logic."""
