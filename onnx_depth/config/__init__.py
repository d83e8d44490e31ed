"""Runtime configuration: model locations and execution providers."""
