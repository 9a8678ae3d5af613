"""filededup — file inventory agent and duplicate-detection client."""
