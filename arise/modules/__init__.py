"""Engine services, one package per progression concern."""
