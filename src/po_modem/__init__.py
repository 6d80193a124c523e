"""Software modem for four-phase audio backup dumps."""
