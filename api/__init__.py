"""HTTP surface for the tool-calling layer."""
