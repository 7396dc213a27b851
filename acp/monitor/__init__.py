"""Terminal reporting for phase results."""
