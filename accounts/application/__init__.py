"""Application layer: the user business core and the delegate dispatcher."""
